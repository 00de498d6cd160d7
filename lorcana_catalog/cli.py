"""CLI interface for the card catalog data store."""

from __future__ import annotations

import argparse
import json
import logging
import sys
from pathlib import Path
from typing import List, Optional

from rich.console import Console
from rich.logging import RichHandler
from rich.table import Table

from lorcana_catalog.catalog import CardCatalog, CardFilters
from lorcana_catalog.collection import CollectionService
from lorcana_catalog.config import AppConfig, load_config
from lorcana_catalog.errors import CatalogError
from lorcana_catalog.lifecycle import DataLifecycle
from lorcana_catalog.models import Collection, NotFound
from lorcana_catalog.store import JsonFileStore

console = Console()


def main(argv: Optional[List[str]] = None) -> None:
    """Entry point for the CLI."""
    parser = _build_parser()
    args = parser.parse_args(argv)

    level = logging.WARNING
    if args.verbose == 1:
        level = logging.INFO
    elif args.verbose >= 2:
        level = logging.DEBUG

    logging.basicConfig(
        level=level,
        format="%(message)s",
        datefmt="[%X]",
        handlers=[RichHandler(console=console, rich_tracebacks=True)],
    )

    if not hasattr(args, "func"):
        parser.print_help()
        return

    try:
        args.func(args)
    except (CatalogError, ValueError) as exc:
        console.print(f"[red]Error:[/red] {exc}")
        sys.exit(1)


def _build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="lorcana-catalog",
        description="Personal Lorcana card catalog: import, collections, backup and restore",
    )
    parser.add_argument(
        "-v", "--verbose",
        action="count",
        default=0,
        help="Increase verbosity (-v info, -vv debug)",
    )
    parser.add_argument(
        "-c", "--config",
        type=Path,
        default=None,
        help="Path to config.yaml (default: config.yaml)",
    )
    parser.add_argument(
        "--data-dir",
        type=str,
        default=None,
        help="Data directory (overrides config and DATA_PATH)",
    )

    subparsers = parser.add_subparsers(title="commands", dest="command")

    # import
    import_parser = subparsers.add_parser("import", help="Replace a document from a JSON file")
    import_parser.add_argument("document", choices=["cards", "sets", "prices"])
    import_parser.add_argument("file", type=Path)
    import_parser.add_argument(
        "--remove-source",
        action="store_true",
        help="Delete the input file afterwards (as the upload endpoint does)",
    )
    import_parser.set_defaults(func=_cmd_import)

    # export
    export_parser = subparsers.add_parser("export", help="Export all documents to one file")
    export_parser.add_argument("--format", default="json", help="Export format (only json)")
    export_parser.set_defaults(func=_cmd_export)

    # backup / restore
    backup_parser = subparsers.add_parser("backup", help="Create a timestamped backup")
    backup_parser.set_defaults(func=_cmd_backup)

    restore_parser = subparsers.add_parser("restore", help="Restore documents from a backup file")
    restore_parser.add_argument("file", type=Path)
    restore_parser.add_argument(
        "--keep-source",
        action="store_true",
        help="Keep the backup file after a successful restore",
    )
    restore_parser.set_defaults(func=_cmd_restore)

    # stats
    stats_parser = subparsers.add_parser("stats", help="Show document counts and catalog breakdown")
    stats_parser.set_defaults(func=_cmd_stats)

    # cards
    cards_parser = subparsers.add_parser("cards", help="List cards")
    cards_parser.add_argument("--set", dest="set_code", default=None)
    cards_parser.add_argument("--color", default=None)
    cards_parser.add_argument("--rarity", default=None)
    cards_parser.add_argument("--search", default=None)
    cards_parser.add_argument("--language", default=None)
    cards_parser.set_defaults(func=_cmd_cards)

    card_parser = subparsers.add_parser("card", help="Show one card as JSON")
    card_parser.add_argument("card_id")
    card_parser.set_defaults(func=_cmd_card)

    sets_parser = subparsers.add_parser("sets", help="List sets")
    sets_parser.add_argument("--language", default=None)
    sets_parser.set_defaults(func=_cmd_sets)

    # collections
    col_parser = subparsers.add_parser("collections", help="Manage collections")
    col_sub = col_parser.add_subparsers(title="collection commands", dest="collection_command")

    p = col_sub.add_parser("list", help="List collections")
    p.set_defaults(func=_cmd_collections_list)

    p = col_sub.add_parser("show", help="Show a collection's cards")
    p.add_argument("collection_id")
    p.set_defaults(func=_cmd_collections_show)

    p = col_sub.add_parser("create", help="Create a collection")
    p.add_argument("name")
    p.add_argument("--description", default="")
    p.set_defaults(func=_cmd_collections_create)

    p = col_sub.add_parser("rename", help="Rename a collection")
    p.add_argument("collection_id")
    p.add_argument("name")
    p.set_defaults(func=_cmd_collections_rename)

    p = col_sub.add_parser("delete", help="Delete a collection")
    p.add_argument("collection_id")
    p.set_defaults(func=_cmd_collections_delete)

    p = col_sub.add_parser("add", help="Add copies of a card (negative quantity subtracts)")
    p.add_argument("collection_id")
    p.add_argument("card_id")
    p.add_argument("--quantity", type=int, default=1)
    p.set_defaults(func=_cmd_collections_add)

    p = col_sub.add_parser("remove", help="Remove a card from a collection")
    p.add_argument("collection_id")
    p.add_argument("card_id")
    p.set_defaults(func=_cmd_collections_remove)

    p = col_sub.add_parser("set-qty", help="Set a card's quantity (0 removes it)")
    p.add_argument("collection_id")
    p.add_argument("card_id")
    p.add_argument("quantity", type=int)
    p.set_defaults(func=_cmd_collections_set_qty)

    return parser


def _load_app_config(args: argparse.Namespace) -> AppConfig:
    """Load config, applying CLI overrides."""
    return load_config(args.config, data_dir=getattr(args, "data_dir", None))


def _store(config: AppConfig) -> JsonFileStore:
    return JsonFileStore(config.storage.data_dir)


def _lifecycle(config: AppConfig) -> DataLifecycle:
    return DataLifecycle(
        _store(config),
        backup_dir=config.storage.backups,
        export_dir=config.storage.exports,
        snapshot=config.snapshot,
    )


def _report(result: Collection | NotFound, what: str) -> None:
    if result is NotFound.COLLECTION:
        console.print("[red]Collection not found[/red]")
        sys.exit(1)
    if result is NotFound.CARD:
        console.print("[red]Card not found in collection[/red]")
        sys.exit(1)
    console.print(f"[green]{what}[/green] {result.name} ({len(result.cards)} cards)")


# ------------------------------------------------------------------
# Command handlers
# ------------------------------------------------------------------


def _cmd_import(args: argparse.Namespace) -> None:
    lifecycle = _lifecycle(_load_app_config(args))
    importers = {
        "cards": lifecycle.import_cards,
        "sets": lifecycle.import_sets,
        "prices": lifecycle.import_prices,
    }
    result = importers[args.document](args.file, remove_source=args.remove_source)
    console.print(f"[green]{result.message}[/green]")


def _cmd_export(args: argparse.Namespace) -> None:
    path = _lifecycle(_load_app_config(args)).export_data(args.format)
    console.print(f"Exported to [cyan]{path}[/cyan]")


def _cmd_backup(args: argparse.Namespace) -> None:
    path = _lifecycle(_load_app_config(args)).create_backup()
    console.print(f"Backup written to [cyan]{path}[/cyan]")


def _cmd_restore(args: argparse.Namespace) -> None:
    result = _lifecycle(_load_app_config(args)).restore_from_backup(
        args.file, remove_source=not args.keep_source
    )
    console.print(f"[green]{result.message}[/green]: {', '.join(result.restored_files)}")
    if result.backup_timestamp:
        console.print(f"Backup taken at {result.backup_timestamp}")


def _cmd_stats(args: argparse.Namespace) -> None:
    config = _load_app_config(args)
    stats = _lifecycle(config).data_stats()

    table = Table(title="Documents")
    table.add_column("Document", style="cyan")
    table.add_column("Records", justify="right", style="green")
    table.add_column("Bytes", justify="right")
    for name in ("cards", "sets", "prices", "collections"):
        size = stats.file_sizes.get(name)
        table.add_row(name, str(getattr(stats, name)), str(size) if size is not None else "-")
    console.print(table)
    console.print(f"Last update: {stats.last_update or 'never'}")

    breakdown = CardCatalog(_store(config)).stats()
    for key, title in (("byColor", "By color"), ("byRarity", "By rarity"), ("bySet", "By set")):
        if not breakdown[key]:
            continue
        hist = Table(title=title)
        hist.add_column("Value", style="cyan")
        hist.add_column("Cards", justify="right", style="green")
        for value, count in sorted(breakdown[key].items()):
            hist.add_row(str(value), str(count))
        console.print(hist)


def _cmd_cards(args: argparse.Namespace) -> None:
    catalog = CardCatalog(_store(_load_app_config(args)))
    cards = catalog.list_cards(CardFilters(
        set=args.set_code,
        color=args.color,
        rarity=args.rarity,
        search=args.search,
        language=args.language,
    ))

    table = Table(title=f"Cards ({len(cards)})")
    table.add_column("ID", style="cyan")
    table.add_column("Name")
    table.add_column("Set")
    table.add_column("Color")
    table.add_column("Rarity")
    table.add_column("Price", justify="right", style="green")
    for card in cards:
        price = card.get("price")
        table.add_row(
            str(card.get("id")),
            str(card.get("fullName")),
            str(card.get("setCode")),
            str(card.get("color") or ""),
            str(card.get("rarity") or ""),
            f"{price['price']} {price['currency']}" if price else "",
        )
    console.print(table)


def _cmd_card(args: argparse.Namespace) -> None:
    card = CardCatalog(_store(_load_app_config(args))).get_card_by_id(args.card_id)
    if card is None:
        console.print(f"[red]Card {args.card_id} not found[/red]")
        sys.exit(1)
    console.print_json(json.dumps(card, ensure_ascii=False))


def _cmd_sets(args: argparse.Namespace) -> None:
    sets = CardCatalog(_store(_load_app_config(args))).list_sets(args.language)
    table = Table(title=f"Sets ({len(sets)})")
    table.add_column("Code", style="cyan")
    table.add_column("Name")
    table.add_column("Released")
    table.add_column("Cards", justify="right")
    table.add_column("Languages")
    for s in sets:
        table.add_row(
            str(s.get("code")),
            str(s.get("name")),
            str(s.get("releaseDate") or ""),
            str(s.get("cardCount") or 0),
            ", ".join(s.get("languages") or []),
        )
    console.print(table)


def _collections(args: argparse.Namespace) -> CollectionService:
    return CollectionService(_store(_load_app_config(args)))


def _cmd_collections_list(args: argparse.Namespace) -> None:
    collections = _collections(args).list_collections()
    table = Table(title=f"Collections ({len(collections)})")
    table.add_column("ID", style="cyan")
    table.add_column("Name")
    table.add_column("Cards", justify="right")
    table.add_column("Copies", justify="right", style="green")
    table.add_column("Updated")
    for c in collections:
        table.add_row(c.id, c.name, str(len(c.cards)), str(c.total_quantity), c.updated_at)
    console.print(table)


def _cmd_collections_show(args: argparse.Namespace) -> None:
    collection = _collections(args).get_collection(args.collection_id)
    if collection is None:
        console.print("[red]Collection not found[/red]")
        sys.exit(1)
    console.print(f"\n[bold]{collection.name}[/bold] {collection.description}\n")
    table = Table()
    table.add_column("Card", style="cyan")
    table.add_column("Quantity", justify="right", style="green")
    table.add_column("Added")
    for entry in collection.cards:
        table.add_row(entry.card_id, str(entry.quantity), entry.added_at)
    console.print(table)


def _cmd_collections_create(args: argparse.Namespace) -> None:
    collection = _collections(args).create_collection(args.name, args.description)
    console.print(f"[green]Created[/green] {collection.name} [cyan]{collection.id}[/cyan]")


def _cmd_collections_rename(args: argparse.Namespace) -> None:
    _report(_collections(args).update_collection(args.collection_id, {"name": args.name}), "Renamed")


def _cmd_collections_delete(args: argparse.Namespace) -> None:
    _report(_collections(args).delete_collection(args.collection_id), "Deleted")


def _cmd_collections_add(args: argparse.Namespace) -> None:
    result = _collections(args).add_card(args.collection_id, args.card_id, args.quantity)
    _report(result, "Updated")


def _cmd_collections_remove(args: argparse.Namespace) -> None:
    _report(_collections(args).remove_card(args.collection_id, args.card_id), "Updated")


def _cmd_collections_set_qty(args: argparse.Namespace) -> None:
    result = _collections(args).set_quantity(args.collection_id, args.card_id, args.quantity)
    _report(result, "Updated")
