from __future__ import annotations

import asyncio
from collections.abc import Callable

from pydantic import ValidationError

from balancedvms.core.config import Settings, get_settings
from balancedvms.core.exceptions import (
    AuthenticationException,
    ConfigurationException,
    StepFailedError,
    describe_error,
)
from balancedvms.core.logging import configure_logging, get_logger
from balancedvms.tools.azure.admin import resolve_admin_credentials
from balancedvms.tools.azure.clients import build_clients
from balancedvms.workflow import WorkflowContext, run_workflow

logger = get_logger(__name__)

EXIT_OK = 0
EXIT_FAILURE = 1


async def _run(
    settings: Settings,
    echo: Callable[[str], None],
    prompt: Callable[[str], str],
) -> None:
    subscription_id = settings.require_subscription_id()
    clients = await build_clients(settings.azure, subscription_id)
    try:
        ctx = WorkflowContext(
            clients=clients,
            layout=settings.sample,
            admin=resolve_admin_credentials(settings.sample),
            echo=echo,
            prompt=prompt,
        )
        await run_workflow(ctx)
    finally:
        await clients.close()


def main(
    echo: Callable[[str], None] = print,
    prompt: Callable[[str], str] = input,
) -> int:
    try:
        settings = get_settings()
    except ValidationError as exc:
        echo(f"Configuration failed: {describe_error(exc)}")
        return EXIT_FAILURE

    obs = settings.observability
    configure_logging(
        level=obs.log_level,
        fmt=obs.log_format,
        log_file=obs.log_file,
        max_bytes=obs.log_rotation_size_mb * 1024 * 1024,
        retention=obs.log_retention_days,
        context={"app": settings.app_name, "version": settings.app_version},
    )

    try:
        asyncio.run(_run(settings, echo, prompt))
    except StepFailedError as exc:
        echo(str(exc))
        return EXIT_FAILURE
    except ConfigurationException as exc:
        echo(f"Configuration failed: {exc.message}")
        return EXIT_FAILURE
    except AuthenticationException as exc:
        echo(f"Authentication failed: {exc.message}")
        return EXIT_FAILURE
    except KeyboardInterrupt:
        logger.warning("workflow.interrupted")
        echo("Interrupted; resources created so far were left in place")
        return 130
    return EXIT_OK
