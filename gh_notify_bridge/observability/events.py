from __future__ import annotations

# Runtime lifecycle
STARTUP_INVALID_CONFIG = "startup.invalid_config"
STARTUP_READY = "startup.ready"
STARTUP_ENDPOINT_REGISTERED = "startup.endpoint_registered"
STARTUP_ENDPOINT_MISSING = "startup.endpoint_missing"
SHUTDOWN_INTERRUPT = "shutdown.interrupt"
SHUTDOWN_UNEXPECTED_ERROR = "shutdown.unexpected_error"

# Poller
POLLER_STARTED = "poller.started"
POLLER_STOPPED = "poller.stopped"

# Cycle
CYCLE_START = "cycle.start"
CYCLE_COMPLETE = "cycle.complete"
CYCLE_SKIPPED_NO_ENDPOINT = "cycle.skipped_no_endpoint"
CYCLE_FETCH_FAILED = "cycle.fetch_failed"
CYCLE_FIRST_POLL_SKIPPED = "cycle.first_poll_skipped"
CYCLE_ITERATION_FAILED = "cycle.iteration_failed"
CYCLE_FATAL_ERROR = "cycle.fatal_error"
CYCLE_OVERRAN_INTERVAL = "cycle.overran_interval"

# Notification source
GITHUB_FETCH_SUMMARY = "github.fetch.summary"
GITHUB_FETCH_FAILED = "github.fetch.failed"

# Push delivery
PUSH_SENT = "push.sent"
PUSH_FAILED = "push.failed"

# Request surface
HTTP_REGISTER_ACCEPTED = "http.register.accepted"
HTTP_REGISTER_REJECTED = "http.register.rejected"
HTTP_POLL_TRIGGERED = "http.poll.triggered"

# State
STATE_LOADED = "state.loaded"
STATE_INVALID_JSON = "state.invalid_json"
STATE_INVALID_SHAPE = "state.invalid_shape"
STATE_READ_FAILED = "state.read_failed"
STATE_BACKUP_FAILED = "state.backup_failed"
STATE_PERSIST_FAILED = "state.persist_failed"
STATE_LEGACY_KEY_MIGRATED = "state.legacy_key_migrated"
STATE_ENDPOINT_UPDATED = "state.endpoint_updated"
STATE_CURSOR_UPDATED = "state.cursor_updated"
