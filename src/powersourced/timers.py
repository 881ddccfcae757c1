"""One-shot timers on the GLib main loop."""

import logging

from gi.repository import GLib

logger = logging.getLogger(__name__)


class GLibScheduler:
    """Runs callbacks once after a delay, on the thread running the main loop."""

    def schedule(self, delay, callback):
        def _fire():
            callback()
            return False  # one-shot

        source_id = GLib.timeout_add(max(0, int(delay * 1000)), _fire)
        logger.debug("Scheduled timer %d in %.1fs", source_id, delay)
        return source_id

    def cancel(self, handle):
        # Removing an already-fired source only logs a GLib warning; avoid it.
        if GLib.MainContext.default().find_source_by_id(handle) is not None:
            GLib.source_remove(handle)
            logger.debug("Cancelled timer %d", handle)
