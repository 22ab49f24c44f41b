"""`waylog pull [--provider NAME] [--force]`"""

from __future__ import annotations

from pathlib import Path

from waylog.commands.run import configured_provider
from waylog.config.schema import Config
from waylog.errors import WaylogError
from waylog.logging import get_logger
from waylog.output import Output
from waylog.paths import ensure_dir_exists, get_history_dir
from waylog.providers import Provider, list_providers
from waylog.session.tracker import SessionTracker
from waylog.sync import Failed, Skipped, Synced, Synchronizer, UpToDate

log = get_logger("pull")


def select_providers(name: str | None, config: Config) -> list[Provider]:
    """Providers to pull from, in the fixed pull order.

    Raises:
        ProviderNotFoundError: If ``name`` is not a known provider.
    """
    names = [name] if name else list_providers()
    return [configured_provider(n, config) for n in names]


async def handle_pull(
    providers: list[Provider],
    force: bool,
    project_root: Path,
    output: Output,
) -> int:
    """Sync every installed provider's sessions for the project.

    Per-file failures are reported but do not change the exit code.
    """
    output.pull_start(project_root)
    history_dir = ensure_dir_exists(get_history_dir(project_root))

    total_synced = 0
    total_up_to_date = 0

    for provider in providers:
        if not provider.is_installed():
            log.debug("Skipping %s (not installed)", provider.name)
            continue

        tracker = await SessionTracker.restore(history_dir, provider.name)
        synchronizer = Synchronizer(provider, project_root, tracker)
        try:
            results = await synchronizer.sync_all(force=force)
        except (WaylogError, OSError) as e:
            log.error("Failed to scan %s: %s", provider.name, e)
            continue

        output.provider_header(provider.name, len(results))

        synced = up_to_date = 0
        for result in results:
            filename = result.source_path.name
            outcome = result.outcome
            if isinstance(outcome, Synced):
                output.synced(filename, outcome.new_messages)
                synced += 1
            elif isinstance(outcome, UpToDate):
                output.up_to_date(filename)
                up_to_date += 1
            elif isinstance(outcome, Skipped):
                output.skipped(filename)
            elif isinstance(outcome, Failed):
                output.failed(filename, str(outcome.error))

        if not output.verbose:
            output.summary_compact(synced, up_to_date)

        total_synced += synced
        total_up_to_date += up_to_date
        await tracker.save()

    output.summary(total_synced, total_up_to_date)
    return 0
