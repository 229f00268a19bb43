STATE_DIR_NAME = ".monday_lite"
CONFIG_FILE = "config.yaml"
CONFIG_ENV_VAR = "MONDAY_LITE_CONFIG"

DEFAULT_VALIDATE_LATENCY_MS = 120
DEFAULT_COMMIT_LATENCY_MS = 340
DEFAULT_METRICS_ITERATIONS = 6_000_000
DEFAULT_LOG_LEVEL = "INFO"

ACTIVITY_LOG_LIMIT = 10

# The only task name the delete policy protects.
PROTECTED_TASK_NAME = "Error Task"

SPAN_OP_MOVE = "task.move"
SPAN_OP_VALIDATE = "validate"
SPAN_OP_COMMIT = "db.update"
SPAN_OP_METRICS = "ui.action.compute"

BREADCRUMB_MODAL = "ui.modal"
BREADCRUMB_INTERACTION = "ui.interaction"
BREADCRUMB_DELETE = "task.delete"
BREADCRUMB_SPRINT_CREATE = "sprint.create"
BREADCRUMB_EPIC_CREATE = "epic.create"

METRICS_TOTAL_KEY = "Total Items"
METRICS_SCORE_KEY = "Perf Score"
