"""
Main CLI interface for Music-Uploader

The CLI is built using Click framework and provides:
- Upload operations (run, preview, search, remote)
- Music User Token handling (auth status, set-token, logout)
- Configuration management (config show, set)

Every network command runs on its own event loop through asyncio.run() and
owns a single AppleMusicClient for its whole duration.
"""

import asyncio
import functools
import sys

import click

from . import __version__
from .applemusic.catalog import CatalogResolver
from .applemusic.client import AppleMusicClient
from .applemusic.models import TrackDefinition
from .applemusic.playlists import RemotePlaylistManager
from .config.settings import get_settings, reload_settings
from .config.auth import get_auth, reset_auth
from .exceptions import AuthenticationError, ConfigError, QueryEncodingError
from .sync.synchronizer import PlaylistSynchronizer, RunStatus
from .utils.logger import configure_from_settings, get_logger, get_current_log_file
from .utils.helpers import build_search_term, format_duration, truncate_string
from .utils.validation import (
    validate_concurrency,
    validate_playlists_directory,
    validate_storefront,
)


# Initialize logging system from configuration settings
configure_from_settings()
logger = get_logger(__name__)


def print_banner():
    """Print application banner to console"""
    banner = """
╔═══════════════════════════════════════════════════════════════╗
║                        Music-Uploader                         ║
║                                                               ║
║      Upload local playlist files to your Apple Music library  ║
║                                                               ║
╚═══════════════════════════════════════════════════════════════╝
    """
    click.echo(click.style(banner, fg='green', bold=True))


def handle_error(func):
    """
    Decorator to handle common CLI errors gracefully

    KeyboardInterrupt exits with 130, any other exception is logged and
    exits with 1.
    """
    @functools.wraps(func)
    def wrapper(*args, **kwargs):
        try:
            return func(*args, **kwargs)
        except KeyboardInterrupt:
            click.echo(click.style("\n\nOperation cancelled by user", fg='yellow'))
            sys.exit(130)  # Standard exit code for SIGINT
        except Exception as e:
            logger.error(f"Command failed: {e}")
            click.echo(click.style(f"Error: {e}", fg='red'), err=True)
            sys.exit(1)
    return wrapper


def fail(message: str) -> None:
    """Print an error message and exit with status 1"""
    click.echo(click.style(message, fg='red'), err=True)
    sys.exit(1)


def resolve_directory(directory):
    """Validate the playlist directory argument, falling back to the configured one"""
    if directory is None:
        directory = str(get_settings().get_playlists_directory())

    is_valid, error_msg = validate_playlists_directory(directory)
    if not is_valid:
        fail(f"Invalid playlists directory: {error_msg}")
    return directory


def require_authentication() -> None:
    """Exit with a hint when the API tokens are not available"""
    auth_manager = get_auth()
    if auth_manager.is_authenticated():
        return

    if not auth_manager.developer_token:
        fail("Apple Music developer token is not configured. Set APPLE_MUSIC_DEVELOPER_TOKEN.")
    fail("Music User Token is not configured. Run 'music-upload auth set-token TOKEN'.")


# Main CLI group - root command that all subcommands attach to
@click.group(invoke_without_command=True)
@click.option('--version', is_flag=True, help='Show version information')
@click.option('--verbose', '-v', is_flag=True, help='Enable verbose output')
@click.option('--config', type=click.Path(), help='Path to config file')
@click.pass_context
def cli(ctx, version, verbose, config):
    """
    Music-Uploader - Upload local playlists to Apple Music

    Reads one JSON file per playlist, finds every track in the Apple Music
    catalog and recreates the playlist in your library.
    """
    ctx.ensure_object(dict)

    if version:
        click.echo(f"Music-Uploader v{__version__}")
        return

    if config:
        try:
            reload_settings(config)
        except ConfigError as e:
            fail(f"Cannot load config: {e}")
        reset_auth()
        configure_from_settings(verbose)
        click.echo(f"Loaded config: {config}")

    if verbose:
        ctx.obj['verbose'] = True
        configure_from_settings(verbose=True)
        logger.info("Verbose mode enabled")

    if ctx.invoked_subcommand is None:
        print_banner()
        click.echo(ctx.get_help())


async def _upload(directory: str, show_progress: bool):
    async with AppleMusicClient() as client:
        synchronizer = PlaylistSynchronizer(client)
        return await synchronizer.run(directory, show_progress=show_progress)


@cli.command()
@click.argument('directory', required=False, type=click.Path())
@click.option('--concurrent', '-c', type=int, help='Concurrent catalog searches')
@click.option('--keep-going', is_flag=True, help='Skip playlists that cannot be created instead of stopping')
@click.option('--no-progress', is_flag=True, help='Hide progress bars')
@handle_error
def run(directory, concurrent, keep_going, no_progress):
    """
    Upload every playlist in DIRECTORY

    DIRECTORY defaults to library.playlists_directory from the configuration.
    Tracks that cannot be found are skipped. The run stops at the first
    playlist that cannot be created unless --keep-going is given.

    A DIRECTORY that does not exist or cannot be read is rejected with exit
    code 1 before any request is sent.
    """
    settings = get_settings()

    if concurrent is not None:
        is_valid, error_msg = validate_concurrency(concurrent)
        if not is_valid:
            fail(error_msg)
        settings.sync.concurrency = concurrent

    if keep_going:
        settings.sync.stop_on_create_failure = False

    problems = settings.validate()
    if problems:
        fail("Invalid configuration:\n   " + "\n   ".join(problems))

    directory = resolve_directory(directory)
    require_authentication()

    result = asyncio.run(_upload(directory, show_progress=not no_progress))

    if result.status == RunStatus.ALREADY_RUNNING:
        click.echo(click.style(result.summary, fg='yellow'))
        return

    click.echo()
    for sync_result in result.playlists:
        color = 'green' if sync_result.created and sync_result.attach_succeeded else 'red'
        click.echo(click.style(f"   {sync_result.summary}", fg=color))
        for name in sync_result.unresolved:
            click.echo(f"      not found: {name}")

    click.echo()
    if result.status == RunStatus.HALTED:
        click.echo(click.style(f"Run stopped: {result.summary}", fg='yellow'))
    else:
        click.echo(click.style(f"Done: {result.summary}", fg='green'))

    if result.total_time is not None:
        click.echo(f"Total time: {format_duration(result.total_time)}")

    current_log = get_current_log_file()
    if current_log:
        click.echo(f"Log file: {current_log}")


@cli.command()
@click.argument('directory', required=False, type=click.Path())
@handle_error
def preview(directory):
    """
    Show what would be uploaded from DIRECTORY

    Lists every playlist with the catalog search term of each track. No
    request is sent to Apple Music.
    """
    directory = resolve_directory(directory)

    playlists = PlaylistSynchronizer().preview(directory)
    if not playlists:
        click.echo("No playlists found")
        return

    for playlist, terms in playlists:
        click.echo(click.style(f"{playlist.name} ({len(playlist)} tracks)", bold=True))
        for track, term in terms:
            if term is None:
                click.echo(click.style(f"   {track.display_name}: search term cannot be encoded", fg='red'))
            else:
                click.echo(f"   {truncate_string(track.display_name, 50)}: {term}")

    click.echo(f"\n{len(playlists)} playlists, {sum(len(p) for p, _ in playlists)} tracks")


async def _list_remote():
    async with AppleMusicClient() as client:
        return await RemotePlaylistManager(client).list_playlists()


@cli.command()
@handle_error
def remote():
    """List the playlists in your Apple Music library"""
    require_authentication()

    playlists = asyncio.run(_list_remote())
    if not playlists:
        click.echo("No library playlists")
        return

    click.echo(f"Library playlists ({len(playlists)}):")
    for playlist in playlists:
        click.echo(f"   {playlist.name}  [{playlist.id}]")


async def _search(term: str):
    async with AppleMusicClient() as client:
        return await CatalogResolver(client).resolve(term)


@cli.command()
@click.argument('track')
@click.argument('artist')
@click.argument('album')
@handle_error
def search(track, artist, album):
    """Find the catalog song that TRACK by ARTIST on ALBUM resolves to"""
    definition = TrackDefinition(track_number=1, track_name=track, artist_name=artist, album_name=album)

    try:
        term = build_search_term(definition)
    except QueryEncodingError as e:
        fail(str(e))

    click.echo(f"Search term: {term}")
    require_authentication()

    match = asyncio.run(_search(term))
    if match is None:
        click.echo(click.style("No catalog match", fg='yellow'))
        return

    click.echo(click.style(f"{match.name} by {match.artist_name} ({match.album_name})", fg='green'))
    click.echo(f"   Id: {match.id}")
    if match.url:
        click.echo(f"   URL: {match.url}")


# Authentication commands group
@cli.group()
def auth():
    """Music User Token management"""
    pass


@auth.command(name='set-token')
@click.argument('token')
@handle_error
def set_token(token):
    """
    Store a Music User Token

    The token comes from a MusicKit authorization and is saved with
    owner-only permissions.
    """
    token = token.strip()
    if not token:
        fail("Token cannot be empty")

    auth_manager = get_auth()
    auth_manager.save_user_token(token)
    click.echo(f"Music User Token saved to {auth_manager.token_file}")


@auth.command()
@handle_error
def logout():
    """Remove the stored Music User Token"""
    click.echo("Removing stored authentication...")

    auth_manager = get_auth()
    auth_manager.revoke_token()
    reset_auth()

    click.echo("Successfully logged out")


@auth.command()
@handle_error
def status():
    """Check which API tokens are available"""
    auth_manager = get_auth()

    if auth_manager.is_authenticated():
        click.echo("Authentication Status: Authenticated")
    else:
        click.echo("Authentication Status: Not authenticated")

    click.echo(f"   Developer token: {'configured' if auth_manager.developer_token else 'missing'}")
    click.echo(f"   Music User Token: {'configured' if auth_manager.user_token else 'missing'}")
    click.echo(f"   Token file: {auth_manager.token_file}")

    try:
        auth_manager.get_headers()
    except AuthenticationError as e:
        click.echo(f"   {e}")


# Configuration commands group
@cli.group()
def config():
    """Configuration management"""
    pass


@config.command()
@handle_error
def show():
    """Show current configuration"""
    settings = get_settings()

    click.echo("Current Configuration:\n")

    if settings.loaded_from:
        click.echo(f"Loaded from: {settings.loaded_from}\n")

    click.echo("Apple Music:")
    click.echo(f"   Storefront: {settings.applemusic.storefront}")
    click.echo(f"   API: {settings.applemusic.api_base_url}")

    click.echo("\nLibrary:")
    click.echo(f"   Playlists directory: {settings.get_playlists_directory()}")

    click.echo("\nSync:")
    click.echo(f"   Concurrent searches: {settings.sync.concurrency}")
    click.echo(f"   Stop on create failure: {settings.sync.stop_on_create_failure}")

    click.echo("\nNetwork:")
    click.echo(f"   Requests per second: {settings.network.requests_per_second}")
    click.echo(f"   Timeout: {settings.network.request_timeout}s")
    click.echo(f"   Retries: {settings.network.max_retries}")

    problems = settings.validate()
    if problems:
        click.echo(click.style("\nProblems:", fg='yellow'))
        for problem in problems:
            click.echo(f"   • {problem}")


@config.command(name='set')
@click.option('--storefront', help='Set the catalog storefront (e.g. us, au)')
@click.option('--playlists-dir', type=click.Path(), help='Set the playlists directory')
@click.option('--concurrent', type=int, help='Set concurrent catalog searches')
@click.option('--retries', type=int, help='Set retries for transient network failures')
@click.option('--stop-on-create-failure/--keep-going', default=None,
              help='Stop or continue the run when a playlist cannot be created')
@handle_error
def set_config(storefront, playlists_dir, concurrent, retries, stop_on_create_failure):
    """
    Update configuration settings

    Changes are saved to the configuration file in use, or to the user
    configuration file when none was loaded. Tokens are never written
    to it.
    """
    settings = get_settings()
    changes = []

    if storefront:
        is_valid, error_msg = validate_storefront(storefront)
        if not is_valid:
            fail(error_msg)
        settings.applemusic.storefront = storefront
        changes.append(f"Storefront: {storefront}")

    if playlists_dir:
        settings.library.playlists_directory = playlists_dir
        changes.append(f"Playlists directory: {playlists_dir}")

    if concurrent is not None:
        is_valid, error_msg = validate_concurrency(concurrent)
        if not is_valid:
            fail(error_msg)
        settings.sync.concurrency = concurrent
        changes.append(f"Concurrent searches: {concurrent}")

    if retries is not None:
        if retries < 0:
            fail("Retries cannot be negative")
        settings.network.max_retries = retries
        changes.append(f"Retries: {retries}")

    if stop_on_create_failure is not None:
        settings.sync.stop_on_create_failure = stop_on_create_failure
        changes.append(f"Stop on create failure: {stop_on_create_failure}")

    if changes:
        saved_to = settings.save_config(settings.loaded_from)
        click.echo(f"Configuration updated ({saved_to}):")
        for change in changes:
            click.echo(f"   • {change}")
    else:
        click.echo("No changes specified")


# Entry point for module execution
if __name__ == '__main__':
    cli()
