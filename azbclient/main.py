"""Main entry point for the azbclient application.

Sets up the Typer CLI application, performs dependency injection (Composition Root),
defines CLI commands, and delegates execution to the CommandHandler.
"""

import asyncio
import logging
from typing import Any, Coroutine, Dict, Optional

import typer
from typing_extensions import Annotated

# --- Setup Logging Early ---
logger = logging.getLogger(__name__)

# --- Core Layer ---
from azbclient.core.command_handler import CommandHandler
from azbclient.core.services.auth_api import AuthApi
from azbclient.core.services.session_service import SessionService

# --- Infrastructure Layer ---
# Config
from azbclient.infrastructure.config.settings import load_configuration, get_config, get_storage_dir, load_client_settings
# UI
from azbclient.infrastructure.cli.display import ConsoleDisplay
# Storage
from azbclient.infrastructure.storage.disk_storage import DiskKeyValueStorage
# Auth
from azbclient.infrastructure.auth.token_store import TokenStore
from azbclient.infrastructure.auth.invalidation import SignalBus, AuthInvalidator
# Resilience
from azbclient.infrastructure.resilience.request_orchestrator import RequestOrchestrator
# Monitoring
from azbclient.infrastructure.monitoring.logger_setup import setup_logging

# --- Dependency Injection Container (Manual) ---

def create_dependencies() -> Dict[str, Any]:
    """Creates and wires up all dependencies for the application.

    This acts as the Composition Root.
    """
    dependencies: Dict[str, Any] = {}

    # 1. Load Configuration First, then configure logging from it
    load_configuration()
    log_level_name = str(get_config('logging.level', 'WARNING')).upper()
    log_level = getattr(logging, log_level_name, logging.WARNING)
    log_file = get_config('logging.file')
    log_format = get_config('logging.format', '%(asctime)s - %(name)s - %(levelname)s - %(message)s')
    setup_logging(log_level=log_level, log_file=log_file, log_format=log_format)
    logger.info("Configuration and logging initialized.")

    # 2. Instantiate Infrastructure Adapters & Services
    dependencies['ui'] = ConsoleDisplay()
    dependencies['settings'] = load_client_settings()
    dependencies['storage'] = DiskKeyValueStorage(get_storage_dir())
    dependencies['token_store'] = TokenStore(dependencies['storage'])
    dependencies['signals'] = SignalBus()
    dependencies['invalidator'] = AuthInvalidator(dependencies['token_store'], dependencies['signals'])

    # 3. One orchestrator instance owns the HTTP client and shared health state
    dependencies['orchestrator'] = RequestOrchestrator(
        settings=dependencies['settings'],
        token_store=dependencies['token_store'],
        invalidator=dependencies['invalidator'],
    )

    # 4. Core Services
    dependencies['auth_api'] = AuthApi(dependencies['orchestrator'])
    dependencies['session_service'] = SessionService(
        auth_api=dependencies['auth_api'],
        token_store=dependencies['token_store'],
        signals=dependencies['signals'],
    )
    dependencies['command_handler'] = CommandHandler(
        orchestrator=dependencies['orchestrator'],
        session_service=dependencies['session_service'],
        ui=dependencies['ui'],
    )
    logger.info("All dependencies initialized successfully.")
    return dependencies

_dependencies: Optional[Dict[str, Any]] = None

def get_dependencies() -> Dict[str, Any]:
    """Builds the dependency container on first use."""
    global _dependencies
    if _dependencies is None:
        _dependencies = create_dependencies()
    return _dependencies

# --- Typer App Definition ---
app = typer.Typer(
    name="azbclient",
    help="azbclient: resilient API client for a cold-start backend with bearer-token sessions.",
    add_completion=False,
)

# --- Helper for Running Async Commands ---
def run_async(coro: Coroutine[Any, Any, bool]) -> None:
    """Runs a command coroutine, closes the HTTP client, and sets the exit code."""
    orchestrator: RequestOrchestrator = get_dependencies()['orchestrator']

    async def _run() -> bool:
        try:
            return await coro
        finally:
            await orchestrator.aclose()

    if not asyncio.run(_run()):
        raise typer.Exit(code=1)

def _handler() -> CommandHandler:
    return get_dependencies()['command_handler']

# --- CLI Commands ---

@app.command()
def health():
    """Check whether the backend is awake, waking it if needed."""
    run_async(_handler().handle_health())

@app.command()
def get(
    path: Annotated[str, typer.Argument(help="API path, e.g. '/products'.")],
):
    """Send a GET request and print the response."""
    run_async(_handler().handle_request("GET", path))

@app.command()
def send(
    method: Annotated[str, typer.Argument(help="HTTP method (POST, PUT, PATCH, DELETE).")],
    path: Annotated[str, typer.Argument(help="API path, e.g. '/products'.")],
    data: Annotated[Optional[str], typer.Option("--data", "-d", help="JSON request body.")] = None,
):
    """Send a request with an optional JSON body."""
    run_async(_handler().handle_request(method.upper(), path, data))

@app.command()
def login(
    email: Annotated[str, typer.Argument(help="Account email.")],
    password: Annotated[str, typer.Option("--password", "-p", prompt=True, hide_input=True, help="Account password.")],
):
    """Log in and store the session for later commands."""
    run_async(_handler().handle_login(email, password))

@app.command()
def logout():
    """Remove the stored session."""
    handler = _handler()

    async def _logout() -> bool:
        return handler.handle_logout()

    # run_async closes the HTTP client built with the handler
    run_async(_logout())

@app.command()
def whoami():
    """Show the user the stored session belongs to."""
    run_async(_handler().handle_whoami())

# --- Main Execution Guard ---

def cli_entry_point():
    """Function to be called by the script entry point in pyproject.toml."""
    app()

if __name__ == "__main__":
    cli_entry_point()
