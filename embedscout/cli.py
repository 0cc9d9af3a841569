#!/usr/bin/env python3
"""
embedscout - command-line interface

Discover embeddable content for a URI and print it as a table or JSON.
"""
import sys
import argparse
import json
import logging
from dataclasses import asdict
from pathlib import Path
from typing import List
from rich.console import Console
from rich.table import Table
from rich.panel import Panel

from embedscout.config import init_config, get_config
from embedscout.engine import Engine
from embedscout.errors import MalformedInput, PageUnreachable
from embedscout.formatters import result_to_json, to_routing_json, to_xml
from embedscout.models import Link

logger = logging.getLogger(__name__)


console = Console()


def output_links(links: List[Link], title: str = "Links"):
    """Render links as a rich table."""
    table = Table(title=title)
    table.add_column("Rel", style="yellow")
    table.add_column("Type", style="cyan")
    table.add_column("Size", style="magenta")
    table.add_column("Href", style="blue")

    for link in links:
        size = f"{link.width or '-'}x{link.height or '-'}" if (link.width or link.height) else ""
        table.add_row(", ".join(link.rel), link.type, size, link.href)

    console.print(table)


def get_engine() -> Engine:
    return Engine.from_config(get_config())


def cmd_links(args):
    """Discover links for a URI."""
    engine = get_engine()
    result = engine.discover(
        args.uri,
        group=args.group,
        whitelist=args.whitelist,
        meta=args.meta,
        debug=args.debug,
        mix_all_with_domain_plugin=True if args.mix_all else None,
    )

    if args.output == "json":
        print(result_to_json(result, debug=args.debug, indent=2))
        return

    if result.meta:
        lines = [f"[bold]{key}[/bold]: {value}" for key, value in result.meta.items()]
        console.print(Panel("\n".join(lines), title="Meta"))

    if result.grouped:
        for group, links in result.links.items():
            output_links(links, title=group)
    elif result.links:
        output_links(result.links)
    else:
        console.print("[yellow]No links found[/yellow]")

    if result.whitelist is not None:
        console.print(f"[cyan]Whitelist:[/cyan] {json.dumps(result.whitelist) if result.whitelist else 'no record'}")

    if args.debug:
        table = Table(title="Plugins")
        table.add_column("Plugin", style="green")
        table.add_column("Links", style="cyan")
        table.add_column("ms", style="magenta")
        table.add_column("Error", style="red")
        for entry in result.trace:
            table.add_row(entry.plugin, str(entry.links), f"{entry.elapsed_ms:.1f}", entry.error or "")
        console.print(table)
        console.print(f"[dim]Total: {result.time}ms[/dim]")


def cmd_oembed(args):
    """Print the oEmbed record of a URI."""
    record = get_engine().oembed(args.uri)
    if args.format == "xml":
        print(to_xml(record))
    else:
        print(json.dumps(record.to_dict(), indent=2, ensure_ascii=False))


def cmd_twitter(args):
    """Print the raw Twitter Card tags of a page."""
    print(json.dumps({"twitter": get_engine().twitter(args.uri)}, indent=2, ensure_ascii=False))


def cmd_routes(args):
    """Print the plugin routing table."""
    print(to_routing_json(get_engine().routing_table(), indent=2))


def cmd_meta_mappings(args):
    """Print the meta attribute vocabulary."""
    mappings = get_engine().meta_mappings()
    if args.output == "json":
        print(json.dumps(mappings, indent=2))
        return

    table = Table(title="Meta mappings")
    table.add_column("Attribute", style="green")
    table.add_column("Sources (highest precedence first)", style="cyan")
    for attribute, sources in mappings["sources"].items():
        table.add_row(attribute, ", ".join(sources))
    console.print(table)


def cmd_plugins(args):
    """List registered plugins."""
    info = get_engine().registry.get_plugin_info()
    if args.output == "json":
        print(json.dumps(info, indent=2))
        return

    table = Table(title="Plugins")
    table.add_column("Name", style="green")
    table.add_column("Domain", style="cyan")
    table.add_column("Patterns", style="blue")
    table.add_column("Exclusive", style="red")
    table.add_column("Description")
    for p in info:
        table.add_row(
            p["name"],
            p["domain"] or "(generic)",
            str(len(p["patterns"])),
            "yes" if p["exclusive"] else "",
            p["description"],
        )
    console.print(table)


def cmd_config(args):
    """Show or initialize configuration."""
    config = get_config()
    if args.action == "show":
        print(json.dumps(asdict(config), indent=2))
    elif args.action == "init":
        path = Path(args.path) if args.path else None
        config.save(path)
        console.print(f"[green]Configuration written to {path or '~/.config/embedscout/config.toml'}[/green]")


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="embedscout",
        description="embedscout - discover embeddable content for any URI",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  embedscout links https://vimeo.com/76979871 --group
  embedscout links youtu.be/dQw4w9WgXcQ --debug --output json
  embedscout oembed https://vimeo.com/76979871 --format xml
  embedscout twitter https://example.com/article
  embedscout routes
  embedscout meta-mappings

Configuration:
  Config file: ~/.config/embedscout/config.toml or ./embedscout.toml
  Environment: EMBEDSCOUT_TIMEOUT, EMBEDSCOUT_WHITELIST_FILE, EMBEDSCOUT_LOG_LEVEL
        """
    )

    parser.add_argument("--config", help="Config file path")
    parser.add_argument("-o", "--output", choices=["table", "json"], help="Output format")
    parser.add_argument("-v", "--verbose", action="store_true", help="Debug logging")

    subparsers = parser.add_subparsers(dest="command", required=True, help="Commands")

    links = subparsers.add_parser("links", help="Discover links for a URI")
    links.add_argument("uri", help="Page URI")
    links.add_argument("--group", action="store_true", help="Group links by relation")
    links.add_argument("--whitelist", action="store_true", help="Include the whitelist record")
    links.add_argument("--meta", action="store_true", help="Include raw meta and oEmbed")
    links.add_argument("--debug", action="store_true", help="Include plugin trace and timing")
    links.add_argument("--mix-all", action="store_true",
                       help="Run generic plugins alongside exclusive domain plugins")
    links.set_defaults(func=cmd_links)

    oembed = subparsers.add_parser("oembed", help="Print the oEmbed record for a URI")
    oembed.add_argument("uri", help="Page URI")
    oembed.add_argument("--format", choices=["json", "xml"], default="json", help="Record format")
    oembed.set_defaults(func=cmd_oembed)

    twitter = subparsers.add_parser("twitter", help="Print a page's Twitter Card tags")
    twitter.add_argument("uri", help="Page URI")
    twitter.set_defaults(func=cmd_twitter)

    routes = subparsers.add_parser("routes", help="Print the plugin routing table")
    routes.set_defaults(func=cmd_routes)

    mappings = subparsers.add_parser("meta-mappings", help="Print the meta attribute vocabulary")
    mappings.set_defaults(func=cmd_meta_mappings)

    plugins = subparsers.add_parser("plugins", help="List registered plugins")
    plugins.set_defaults(func=cmd_plugins)

    config_parser = subparsers.add_parser("config", help="Manage configuration")
    config_parser.add_argument("action", choices=["show", "init"], help="Config action")
    config_parser.add_argument("path", nargs="?", help="Target file (for init)")
    config_parser.set_defaults(func=cmd_config)

    return parser


def main(argv: List[str] = None):
    """Main entry point."""
    parser = build_parser()
    args = parser.parse_args(argv)

    config_args = {}
    if args.output:
        config_args["output_format"] = args.output
    if args.verbose:
        config_args["log_level"] = "DEBUG"

    config = init_config(
        config_file=Path(args.config) if args.config else None,
        **config_args,
    )

    if not args.output:
        args.output = config.output_format

    logging.basicConfig(
        level=getattr(logging, str(config.log_level).upper(), logging.WARNING),
        format="%(levelname)s: %(message)s",
    )

    try:
        args.func(args)
    except MalformedInput as e:
        console.print(f"[red]Error: {e}[/red]")
        sys.exit(2)
    except PageUnreachable as e:
        console.print(f"[red]Page not found: {e.uri}[/red]")
        sys.exit(4)
    except KeyboardInterrupt:
        console.print("\n[yellow]Interrupted[/yellow]")
        sys.exit(130)
    except Exception as e:
        console.print(f"[red]Error: {e}[/red]")
        sys.exit(1)


if __name__ == "__main__":
    main()
