"""waylog: supervise AI coding assistants and mirror their chat history to markdown.

Example usage:
    from waylog.providers import get_provider
    from waylog.session import SessionTracker
    from waylog.sync import Synchronizer

    provider = get_provider("claude")
    tracker = await SessionTracker.restore(history_dir, provider.name)
    results = await Synchronizer(provider, project_root, tracker).sync_all()
"""

__version__ = "0.1.0"

__all__ = ["__version__"]
