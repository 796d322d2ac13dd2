from __future__ import annotations

import argparse
import json
from pathlib import Path
from typing import Any, Sequence

from .application import InvalidSizingInput, SizingApplication, UnknownEquipmentError
from .config import configure_logging
from .db.session import init_db
from .persistence import PersistenceService
from .presets import list_module_presets
from .string_layout import build_string_table

MODULE_FLAGS = ("power", "voc", "vmp", "isc", "imp", "temp_coeff_voc", "temp_coeff_vmp")
INVERTER_FLAGS = ("max_input_voltage", "min_mppt_voltage", "max_mppt_voltage", "max_input_current")
SITE_FLAGS = ("min_temp", "max_temp")


def _add_float_flags(parser: argparse.ArgumentParser, names: Sequence[str], group: str) -> None:
    for name in names:
        parser.add_argument(
            f"--{name.replace('_', '-')}",
            type=float,
            dest=name,
            default=None,
            help=f"{group} {name} (overrides file/catalog value)",
        )


def build_argument_parser() -> argparse.ArgumentParser:
    """
    Build the CLI argument parser used by entry points.

    Returns:
        Configured argparse.ArgumentParser instance.
    """
    parser = argparse.ArgumentParser(description="Solar string sizer CLI")
    parser.add_argument("--log-level", default=None, help="Logging level (default from env or INFO)")
    sub = parser.add_subparsers(dest="command")

    size = sub.add_parser("size", help="Size a module string for an inverter")
    size.add_argument("--file", default=None, help="JSON file with module/inverter/site sections")
    size.add_argument("--module-name", default=None, help="Catalog module or built-in preset name")
    size.add_argument("--inverter-name", default=None, help="Catalog inverter name")
    size.add_argument("--label", default=None, help="Display name for history and report")
    size.add_argument("--report", action="store_true", help="Write a PDF report to the report folder")
    size.add_argument("--no-history", action="store_true", help="Do not store the run in the history")
    size.add_argument("--table", action="store_true", help="Include the per-length string table")
    _add_float_flags(size, MODULE_FLAGS, "Module")
    _add_float_flags(size, INVERTER_FLAGS, "Inverter")
    _add_float_flags(size, SITE_FLAGS, "Site")

    presets = sub.add_parser("presets", help="Built-in module presets")
    presets_sub = presets.add_subparsers(dest="presets_command")
    presets_list = presets_sub.add_parser("list", help="List built-in module presets")
    presets_list.add_argument("--manufacturer", default=None, help="Filter by manufacturer")

    catalog = sub.add_parser("catalog", help="Manage the equipment catalog")
    catalog_sub = catalog.add_subparsers(dest="catalog_command")

    catalog_list = catalog_sub.add_parser("list", help="List catalog entries")
    catalog_list.add_argument(
        "--type",
        choices=["all", "module", "inverter"],
        default="all",
        help="Filter by equipment type",
    )

    upsert_module = catalog_sub.add_parser("upsert-module", help="Create or update a module")
    upsert_module.add_argument("--name", required=True)
    upsert_module.add_argument("--manufacturer")
    for name in MODULE_FLAGS:
        upsert_module.add_argument(f"--{name.replace('_', '-')}", type=float, dest=name, required=True)

    upsert_inverter = catalog_sub.add_parser("upsert-inverter", help="Create or update an inverter")
    upsert_inverter.add_argument("--name", required=True)
    upsert_inverter.add_argument("--manufacturer")
    for name in INVERTER_FLAGS:
        upsert_inverter.add_argument(f"--{name.replace('_', '-')}", type=float, dest=name, required=True)

    catalog_sub.add_parser("seed", help="Copy built-in module presets into the catalog")

    history = sub.add_parser("history", help="Inspect recent sizing runs")
    history_sub = history.add_subparsers(dest="history_command")
    history_list = history_sub.add_parser("list", help="List recent runs, newest first")
    history_list.add_argument("--limit", type=int, default=None)
    history_show = history_sub.add_parser("show", help="Show one run in full")
    history_show.add_argument("id", type=int)
    history_sub.add_parser("clear", help="Delete every stored run")

    extract = sub.add_parser("extract", help="Extract specs from datasheet text")
    extract.add_argument("--kind", choices=["module", "inverter"], required=True)
    extract.add_argument("--file", required=True, help="Text file with the datasheet contents")

    return parser


def _load_json_file(path: str | Path) -> dict[str, Any]:
    file_path = Path(path)
    if not file_path.exists():
        raise SystemExit(f"File not found: {file_path}")
    try:
        return json.loads(file_path.read_text(encoding="utf-8"))
    except json.JSONDecodeError as exc:
        raise SystemExit(f"Invalid JSON file ({file_path}): {exc}") from exc


def _load_text_file(path: str | Path) -> str:
    file_path = Path(path)
    if not file_path.exists():
        raise SystemExit(f"File not found: {file_path}")
    return file_path.read_text(encoding="utf-8", errors="replace")


def _print_json(data: Any) -> None:
    print(json.dumps(data, indent=2, default=str, ensure_ascii=False))


def _size_payload_from_args(args: argparse.Namespace) -> dict[str, Any]:
    payload: dict[str, Any] = _load_json_file(args.file) if args.file else {}
    if args.module_name:
        payload["module_name"] = args.module_name
    if args.inverter_name:
        payload["inverter_name"] = args.inverter_name
    for section, names in (("module", MODULE_FLAGS), ("inverter", INVERTER_FLAGS), ("site", SITE_FLAGS)):
        overrides = {name: getattr(args, name) for name in names if getattr(args, name) is not None}
        if overrides:
            payload[section] = {**payload.get(section, {}), **overrides}
    if args.label:
        payload["label"] = args.label
    return payload


def _history_entry(entry: Any, *, full: bool = False) -> dict[str, Any]:
    data = {
        "id": entry.id,
        "label": entry.label,
        "is_compatible": entry.is_compatible,
        "min_modules": entry.result.get("min_modules"),
        "max_modules": entry.result.get("max_modules"),
        "created_at": entry.created_at,
    }
    if full:
        data["inputs"] = entry.inputs
        data["result"] = entry.result
    return data


def main(argv: Sequence[str] | None = None) -> None:
    """
    CLI entry point for sizing, catalog and history commands.

    Args:
        argv: Optional sequence of CLI args (defaults to sys.argv).
    """
    parser = build_argument_parser()
    args = parser.parse_args(argv)
    configure_logging(args.log_level)

    if not args.command:
        parser.print_help()
        return

    if args.command == "presets":
        if args.presets_command != "list":
            parser.error("Specify a presets subcommand (list).")
        _print_json(
            [
                {"manufacturer": preset.manufacturer, "name": preset.name, "power": preset.specs.power}
                for preset in list_module_presets(args.manufacturer)
            ]
        )
        return

    init_db()
    persistence = PersistenceService()
    app = SizingApplication(persistence=persistence)

    if args.command == "size":
        payload = _size_payload_from_args(args)
        try:
            module, inverter, site = app.build_inputs(payload)
        except (UnknownEquipmentError, InvalidSizingInput) as exc:
            raise SystemExit(str(exc)) from exc
        summary = app.size(
            module,
            inverter,
            site,
            label=payload.get("label"),
            record=not args.no_history,
            save_report=args.report,
        )
        if args.table:
            table = build_string_table(module, inverter, site)
            summary["string_table"] = json.loads(table.to_json(orient="records"))
        _print_json(summary)
        return

    if args.command == "catalog":
        if not args.catalog_command:
            parser.error("Specify a catalog subcommand (list/upsert-module/upsert-inverter/seed).")

        if args.catalog_command == "list":
            payload: dict[str, Any] = {}
            if args.type in ("all", "module"):
                payload["modules"] = [
                    {"id": m.id, "name": m.name, "manufacturer": m.manufacturer, **(m.specs or {})}
                    for m in persistence.list_modules()
                ]
            if args.type in ("all", "inverter"):
                payload["inverters"] = [
                    {"id": inv.id, "name": inv.name, "manufacturer": inv.manufacturer, **(inv.specs or {})}
                    for inv in persistence.list_inverters()
                ]
            _print_json(payload)
            return

        if args.catalog_command == "upsert-module":
            data = {"name": args.name, "manufacturer": args.manufacturer}
            data.update({name: getattr(args, name) for name in MODULE_FLAGS})
            persistence.upsert_module(data)
            print(f"Module '{args.name}' saved.")
            return

        if args.catalog_command == "upsert-inverter":
            data = {"name": args.name, "manufacturer": args.manufacturer}
            data.update({name: getattr(args, name) for name in INVERTER_FLAGS})
            persistence.upsert_inverter(data)
            print(f"Inverter '{args.name}' saved.")
            return

        if args.catalog_command == "seed":
            count = persistence.seed_module_presets()
            print(f"Seeded {count} module presets.")
            return

        parser.error(f"Unknown catalog subcommand: {args.catalog_command}")

    if args.command == "history":
        if not args.history_command:
            parser.error("Specify a history subcommand (list/show/clear).")

        if args.history_command == "list":
            _print_json([_history_entry(entry) for entry in persistence.list_history(args.limit)])
            return

        if args.history_command == "show":
            entry = persistence.get_history_entry(args.id)
            if entry is None:
                raise SystemExit(f"History entry {args.id} not found.")
            _print_json(_history_entry(entry, full=True))
            return

        if args.history_command == "clear":
            count = persistence.clear_history()
            print(f"Deleted {count} history entries.")
            return

        parser.error(f"Unknown history subcommand: {args.history_command}")

    if args.command == "extract":
        text = _load_text_file(args.file)
        _print_json(app.extract(args.kind, text))
        return

    parser.error(f"Unknown command: {args.command}")


if __name__ == "__main__":
    main()
