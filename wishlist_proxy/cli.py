"""Command line tools for operating the wishlist proxy."""

import argparse
import sys

from dotenv import load_dotenv
from rich.console import Console
from rich.panel import Panel

from wishlist_proxy.auth.identity import resolve_identity
from wishlist_proxy.auth.jwt import TokenService, lifetime_for
from wishlist_proxy.auth.proxy import SHOP_DOMAIN_HEADER, SIGNATURE_HEADER, compute_proxy_signature
from wishlist_proxy.errors import WishlistError

console = Console()


def cmd_migrate(args: argparse.Namespace) -> int:
    from wishlist_proxy.db.migrations import downgrade_migrations, get_current_revision, run_migrations

    with console.status("[bold blue]Running migrations...[/bold blue]"):
        if args.downgrade:
            downgrade_migrations(args.downgrade, args.database_url)
        else:
            run_migrations(args.database_url)
    console.print(f"[green]Database at revision[/green] {get_current_revision(args.database_url)}")
    return 0


def cmd_token(args: argparse.Namespace) -> int:
    tokens = TokenService.from_env()
    identity = resolve_identity(args.subject)
    token = tokens.issue(args.shop.strip().lower(), identity)
    console.print(Panel.fit(
        f"[bold]{token}[/bold]\n"
        f"[dim]subject={args.subject or '-'} expires_in={lifetime_for(identity)}s[/dim]",
        title="Storefront token",
        border_style="blue",
    ))
    return 0


def cmd_sign(args: argparse.Namespace) -> int:
    from wishlist_proxy.auth.proxy import ProxyConfig

    body = args.body.encode()
    signature = compute_proxy_signature(body, ProxyConfig.from_env().api_secret)
    console.print(f"{SIGNATURE_HEADER}: {signature}")
    if args.shop:
        console.print(f"{SHOP_DOMAIN_HEADER}: {args.shop}")
    return 0


def cmd_install(args: argparse.Namespace) -> int:
    from wishlist_proxy.db.database import get_db_session
    from wishlist_proxy.services.sessions import SessionManager

    with get_db_session() as db:
        shop = SessionManager(db, TokenService.from_env()).install_shop(args.shop.strip().lower(), args.access_token)
        console.print(f"[green]Stored credentials for[/green] {shop.domain}")
    return 0


def cmd_serve(args: argparse.Namespace) -> int:
    import uvicorn

    uvicorn.run(
        "wishlist_proxy.server:app",
        host=args.host,
        port=args.port,
        reload=args.reload,
    )
    return 0


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(prog="wishlist-proxy", description="Wishlist proxy tools")
    subparsers = parser.add_subparsers(dest="command", required=True)

    migrate = subparsers.add_parser("migrate", help="Upgrade the database to the latest revision")
    migrate.add_argument("--database-url", default=None)
    migrate.add_argument("--downgrade", metavar="REVISION", default=None, help="Downgrade to REVISION instead, e.g. -1 or base")
    migrate.set_defaults(func=cmd_migrate)

    token = subparsers.add_parser("token", help="Mint a storefront session token")
    token.add_argument("shop", help="Shop domain, e.g. my-store.myshopify.com")
    token.add_argument("--subject", default=None, help="Customer id or guest_<key>")
    token.set_defaults(func=cmd_token)

    sign = subparsers.add_parser("sign", help="Sign a request body like the app proxy does")
    sign.add_argument("body", nargs="?", default="", help="Raw JSON request body")
    sign.add_argument("--shop", default=None)
    sign.set_defaults(func=cmd_sign)

    install = subparsers.add_parser("install", help="Store a shop's access credential")
    install.add_argument("shop")
    install.add_argument("access_token")
    install.set_defaults(func=cmd_install)

    serve = subparsers.add_parser("serve", help="Run the HTTP server")
    serve.add_argument("--host", default="0.0.0.0")
    serve.add_argument("--port", type=int, default=8000)
    serve.add_argument("--reload", action="store_true")
    serve.set_defaults(func=cmd_serve)

    return parser


def main(argv: list[str] | None = None) -> int:
    """Entry point for the ``wishlist-proxy`` command."""
    load_dotenv()
    args = build_parser().parse_args(argv)
    try:
        return args.func(args)
    except WishlistError as e:
        console.print(f"[red]Error:[/red] {e.message}")
        return 1


if __name__ == "__main__":
    sys.exit(main())
