# File: const.py
"""Constants for the Family Economy integration.

This file centralizes storage keys, defaults, failure reasons, event names,
service names and config option keys so that engines, managers, services and
flows share a single vocabulary.
"""

import logging

import homeassistant.util.dt as dt_util
from homeassistant.const import Platform

from .utils import dt_utils


def set_default_timezone(hass):
    """Set the default timezone based on the Home Assistant configuration."""
    global DEFAULT_TIME_ZONE
    DEFAULT_TIME_ZONE = dt_util.get_time_zone(hass.config.time_zone)
    if DEFAULT_TIME_ZONE is not None:
        dt_utils.set_default_timezone(DEFAULT_TIME_ZONE)


# ------------------------------------------------------------------------------------------------
# General / Integration Information
# ------------------------------------------------------------------------------------------------
FAMILY_ECONOMY_TITLE = "Family Economy"

DOMAIN = "family_economy"

LOGGER = logging.getLogger(__package__)

PLATFORMS: list[Platform] = [Platform.SENSOR]

COORDINATOR = "coordinator"
COORDINATOR_SUFFIX = "_coordinator"
RECOVERY_MANAGER = "recovery_manager"
STORE = "store"

MSG_NO_ENTRY_FOUND = "No Family Economy entry found"

# Storage and Versioning
STORAGE_KEY = "family_economy_v1"
STORAGE_VERSION = 1
STORAGE_SAVE_DELAY = 1  # seconds, debounce for Store.async_delay_save

# Default timezone: initially None, to be set once hass is available.
DEFAULT_TIME_ZONE = None

DEFAULT_UPDATE_INTERVAL = 5  # minutes
DEFAULT_DAILY_RESET_TIME = {"hour": 0, "minute": 0, "second": 5}


# ------------------------------------------------------------------------------------------------
# Enumerations
# ------------------------------------------------------------------------------------------------
RECURRENCE_DAILY = "daily"
RECURRENCE_WEEKLY = "weekly"
RECURRENCE_OPTIONS = [RECURRENCE_DAILY, RECURRENCE_WEEKLY]

ROLE_PARENT = "parent"
ROLE_CHILD = "child"
ROLE_OPTIONS = [ROLE_PARENT, ROLE_CHILD]

TRANSACTION_TYPE_EARN = "earn"
TRANSACTION_TYPE_REDEEM = "redeem"
TRANSACTION_TYPE_BONUS = "bonus"
TRANSACTION_TYPE_ADJUST = "adjust"
TRANSACTION_TYPES = [
    TRANSACTION_TYPE_EARN,
    TRANSACTION_TYPE_REDEEM,
    TRANSACTION_TYPE_BONUS,
    TRANSACTION_TYPE_ADJUST,
]

STATUS_PENDING = "pending"
STATUS_APPROVED = "approved"
STATUS_REJECTED = "rejected"

TEMPLATE_KIND_CHORE = "chore"
TEMPLATE_KIND_JOB = "job"

# Weekday numbering used by the weekly reset setting: 0 = Sunday ... 6 = Saturday
WEEKDAY_SUNDAY = 0
WEEKDAY_SATURDAY = 6
WEEKDAY_OPTIONS = [
    "sunday",
    "monday",
    "tuesday",
    "wednesday",
    "thursday",
    "friday",
    "saturday",
]


# ------------------------------------------------------------------------------------------------
# Data Keys (storage)
# ------------------------------------------------------------------------------------------------
DATA_USERS = "users"
DATA_CHORES = "chores"
DATA_JOBS = "jobs"
DATA_CHORE_TEMPLATES = "chore_templates"
DATA_JOB_TEMPLATES = "job_templates"
DATA_TRANSACTIONS = "transactions"
DATA_SETTINGS = "settings"
DATA_PARENT_PASSWORD = "parent_password"
DATA_ACTIVE_USER_ID = "active_user_id"
DATA_RECOVERY = "recovery"
DATA_LAST_SAVED = "last_saved"

DATA_COLLECTION_KEYS = (
    DATA_USERS,
    DATA_JOBS,
    DATA_CHORES,
    DATA_CHORE_TEMPLATES,
    DATA_JOB_TEMPLATES,
    DATA_TRANSACTIONS,
)

# Shared entity keys
DATA_ID = "id"
DATA_NAME = "name"
DATA_ICON = "icon"
DATA_CREATED_AT = "created_at"
DATA_TEMPLATE_ID = "template_id"

# User
DATA_USER_AVATAR = "avatar"
DATA_USER_ROLE = "role"
DATA_USER_CASH_BALANCE = "cash_balance"
DATA_USER_PENDING_BALANCE = "pending_balance"
DATA_USER_GEMS = "gems"
DATA_USER_CURRENT_STREAK = "current_streak"
DATA_USER_LONGEST_STREAK = "longest_streak"
DATA_USER_LAST_ACTIVE_DATE = "last_active_date"

# Chore
DATA_CHORE_POINTS = "points"
DATA_CHORE_RECURRENCE = "recurrence"
DATA_CHORE_USER_ID = "user_id"
DATA_CHORE_COMPLETED = "completed"
DATA_CHORE_PENDING_APPROVAL = "pending_approval"
DATA_CHORE_COMPLETED_AT = "completed_at"
DATA_CHORE_LAST_RESET = "last_reset"

# Job
DATA_JOB_TITLE = "title"
DATA_JOB_DESCRIPTION = "description"
DATA_JOB_VALUE = "value"
DATA_JOB_USER_ID = "user_id"
DATA_JOB_RECURRENCE = "recurrence"
DATA_JOB_IS_LOCKED = "is_locked"
DATA_JOB_UNLOCK_CONDITIONS = "unlock_conditions"
DATA_JOB_UNLOCK_DAILY_CHORES = "daily_chores"
DATA_JOB_UNLOCK_WEEKLY_CHORES = "weekly_chores"
DATA_JOB_UNLOCK_REQUIRE_ALL = "require_all_chores"
DATA_JOB_ALLOW_MULTIPLE = "allow_multiple_completions"
DATA_JOB_MAX_COMPLETIONS = "max_completions_per_period"
DATA_JOB_COMPLETIONS = "completions"
DATA_JOB_LAST_RESET = "last_reset"
DATA_JOB_REQUIRES_APPROVAL = "requires_approval"
DATA_JOB_CREATED_BY = "created_by"

# Completion event
DATA_COMPLETION_TIMESTAMP = "timestamp"
DATA_COMPLETION_COUNT = "count"
DATA_COMPLETION_VALUE = "value_at_completion"
DATA_COMPLETION_TOTAL_EARNED = "total_earned"
DATA_COMPLETION_STATUS = "status"
DATA_COMPLETION_APPROVED_BY = "approved_by"
DATA_COMPLETION_APPROVED_AT = "approved_at"

# Transaction
DATA_TXN_USER_ID = "user_id"
DATA_TXN_TYPE = "type"
DATA_TXN_AMOUNT = "amount"
DATA_TXN_DATE = "date"
DATA_TXN_DESCRIPTION = "description"
DATA_TXN_JOB_ID = "job_id"
DATA_TXN_COMPLETION_COUNT = "completion_count"
DATA_TXN_APPROVED_BY = "approved_by"
DATA_TXN_STATUS = "status"

# Settings
DATA_SETTINGS_WEEKLY_RESET_DAY = "weekly_reset_day"
DATA_SETTINGS_REQUIRE_APPROVAL_JOBS = "require_approval_for_jobs"
DATA_SETTINGS_REQUIRE_APPROVAL_CHORES = "require_approval_for_chores"
DATA_SETTINGS_CURRENCY = "currency"

# Recovery
DATA_RECOVERY_EMAIL_HASH = "email_hash"
DATA_RECOVERY_EMAIL_HINT = "email_hint"


# ------------------------------------------------------------------------------------------------
# Defaults
# ------------------------------------------------------------------------------------------------
DEFAULT_WEEKLY_RESET_DAY = WEEKDAY_SUNDAY
DEFAULT_REQUIRE_APPROVAL_JOBS = True
DEFAULT_REQUIRE_APPROVAL_CHORES = True
DEFAULT_CURRENCY = "USD"

DEFAULT_PARENT_AVATAR = "👨"
DEFAULT_CHILD_AVATAR = "👦"
DEFAULT_CHORE_ICON = "📋"
DEFAULT_CHORE_POINTS = 5
DEFAULT_JOB_ICON = "✨"
DEFAULT_JOB_VALUE = 100  # cents
DEFAULT_RECURRENCE = RECURRENCE_DAILY
DEFAULT_COMPLETION_COUNT = 1
DEFAULT_ZERO = 0

ID_PREFIX_USER = "user_"
ID_PREFIX_CHORE = "chore_"
ID_PREFIX_JOB = "job_"
ID_PREFIX_TXN = "txn_"
ID_PREFIX_COMPLETION = "completion_"
ID_PREFIX_CHORE_TEMPLATE = "chore_template_"
ID_PREFIX_JOB_TEMPLATE = "job_template_"

# Currency limits
CURRENCY_SYMBOL = "$"
CENTS_PER_DOLLAR = 100
MIN_CENTS_AMOUNT = 1
MAX_CENTS_AMOUNT = 1_000_000

# Pattern gate
PATTERN_DOT_COUNT = 9
PATTERN_MIN_DOTS = 4

# Recovery
RECOVERY_CODE_LENGTH = 6
RECOVERY_CODE_EXPIRY_MINUTES = 10


# ------------------------------------------------------------------------------------------------
# Failure reasons (returned in result dicts, never raised)
# ------------------------------------------------------------------------------------------------
REASON_NOT_FOUND = "not found"
REASON_LOCKED = "Job is locked. Complete more chores to unlock."
REASON_MAX_REACHED_FMT = "Maximum {max} completions reached for this period."
REASON_ALREADY_COMPLETED = "Already completed this period."
REASON_INVALID_COUNT = "Completion count must be a positive whole number."
REASON_MULTIPLE_NOT_ALLOWED = "This job can only be completed once per period."
REASON_UNASSIGNED = "Item is not assigned to anyone."
REASON_INSUFFICIENT_BALANCE = "Insufficient balance"
REASON_INVALID_AMOUNT = "Invalid amount"
REASON_NOTHING_PENDING = "Nothing pending approval"
REASON_INVALID_DATA = "invalid data"


# ------------------------------------------------------------------------------------------------
# Events (fired on the HA bus as "family_economy_<event>")
# ------------------------------------------------------------------------------------------------
EVENT_PREFIX = f"{DOMAIN}_"
EVENT_USER_ADDED = "user_added"
EVENT_USER_DELETED = "user_deleted"
EVENT_CHORE_COMPLETED = "chore_completed"
EVENT_CHORE_APPROVED = "chore_approved"
EVENT_CHORE_REJECTED = "chore_rejected"
EVENT_JOB_COMPLETED = "job_completed"
EVENT_JOB_APPROVED = "job_approved"
EVENT_JOB_REJECTED = "job_rejected"
EVENT_CASH_REDEEMED = "cash_redeemed"
EVENT_BALANCE_ADJUSTED = "balance_adjusted"
EVENT_BONUS_AWARDED = "bonus_awarded"
EVENT_STREAK_UPDATED = "streak_updated"
EVENT_PERIOD_RESET = "period_reset"
EVENT_TEMPLATE_APPLIED = "template_applied"


# ------------------------------------------------------------------------------------------------
# Config / Options flow
# ------------------------------------------------------------------------------------------------
CONF_WEEKLY_RESET_DAY = "weekly_reset_day"
CONF_REQUIRE_APPROVAL_JOBS = "require_approval_for_jobs"
CONF_REQUIRE_APPROVAL_CHORES = "require_approval_for_chores"
CONF_ENABLE_RECOVERY = "enable_recovery"
CONF_RECOVERY_NOTIFY_SERVICE = "recovery_notify_service"
CONF_UPDATE_INTERVAL = "update_interval"

DEFAULT_ENABLE_RECOVERY = False
DEFAULT_RECOVERY_NOTIFY_SERVICE = ""
MIN_UPDATE_INTERVAL = 1  # minutes
MAX_UPDATE_INTERVAL = 60
CONF_EMPTY = ""
LABEL_NONE = "None"

CONFIG_FLOW_STEP_USER = "user"
OPTIONS_FLOW_STEP_INIT = "init"

TRANS_KEY_ERROR_SINGLE_INSTANCE = "single_instance_allowed"
TRANS_KEY_ERROR_INVALID_RESET_DAY = "invalid_reset_day"
TRANS_KEY_ERROR_INVALID_UPDATE_INTERVAL = "invalid_update_interval"
TRANS_KEY_ERROR_RECOVERY_SERVICE_REQUIRED = "recovery_service_required"
TRANS_KEY_INVALID_NAME = "invalid_name"
TRANS_KEY_INVALID_ROLE = "invalid_role"
TRANS_KEY_INVALID_RECURRENCE = "invalid_recurrence"
TRANS_KEY_INVALID_POINTS = "invalid_points"
TRANS_KEY_INVALID_VALUE = "invalid_value"
TRANS_KEY_INVALID_UNLOCK_CONDITIONS = "invalid_unlock_conditions"
TRANS_KEY_INVALID_MAX_COMPLETIONS = "invalid_max_completions"
TRANS_KEY_INVALID_PATTERN = "invalid_pattern"
TRANS_KEY_PATTERN_MISMATCH = "pattern_mismatch"
TRANS_KEY_NOT_FOUND = "not_found"
TRANS_KEY_OPERATION_FAILED = "operation_failed"
TRANS_KEY_RECOVERY_DISABLED = "recovery_disabled"


# ------------------------------------------------------------------------------------------------
# Services
# ------------------------------------------------------------------------------------------------
SERVICE_ADD_USER = "add_user"
SERVICE_UPDATE_USER = "update_user"
SERVICE_DELETE_USER = "delete_user"
SERVICE_SWITCH_USER = "switch_user"
SERVICE_ADD_CHORE = "add_chore"
SERVICE_UPDATE_CHORE = "update_chore"
SERVICE_DELETE_CHORE = "delete_chore"
SERVICE_ASSIGN_CHORE = "assign_chore"
SERVICE_COMPLETE_CHORE = "complete_chore"
SERVICE_APPROVE_CHORE = "approve_chore"
SERVICE_REJECT_CHORE = "reject_chore"
SERVICE_ADD_JOB = "add_job"
SERVICE_UPDATE_JOB = "update_job"
SERVICE_DELETE_JOB = "delete_job"
SERVICE_COMPLETE_JOB = "complete_job"
SERVICE_ASSIGN_JOB = "assign_job"
SERVICE_APPROVE_JOB = "approve_job"
SERVICE_REJECT_JOB = "reject_job"
SERVICE_APPROVE_COMPLETION = "approve_completion"
SERVICE_REJECT_COMPLETION = "reject_completion"
SERVICE_ADD_CHORE_TEMPLATE = "add_chore_template"
SERVICE_ADD_JOB_TEMPLATE = "add_job_template"
SERVICE_UPDATE_TEMPLATE = "update_template"
SERVICE_DELETE_TEMPLATE = "delete_template"
SERVICE_APPLY_TEMPLATE = "apply_template"
SERVICE_REDEEM_CASH = "redeem_cash"
SERVICE_ADJUST_BALANCE = "adjust_balance"
SERVICE_AWARD_BONUS = "award_bonus"
SERVICE_RUN_MAINTENANCE = "run_maintenance"
SERVICE_SET_PARENT_PATTERN = "set_parent_pattern"
SERVICE_SET_RECOVERY_EMAIL = "set_recovery_email"
SERVICE_SEND_RECOVERY_CODE = "send_recovery_code"
SERVICE_VERIFY_RECOVERY_CODE = "verify_recovery_code"

# Read-only services that return data to the caller
SERVICE_GET_JOB_STATUS = "get_job_status"
SERVICE_GET_TRANSACTIONS = "get_transactions"
SERVICE_GET_PENDING_APPROVALS = "get_pending_approvals"

ALL_SERVICES = (
    SERVICE_ADD_USER,
    SERVICE_UPDATE_USER,
    SERVICE_DELETE_USER,
    SERVICE_SWITCH_USER,
    SERVICE_ADD_CHORE,
    SERVICE_UPDATE_CHORE,
    SERVICE_DELETE_CHORE,
    SERVICE_ASSIGN_CHORE,
    SERVICE_COMPLETE_CHORE,
    SERVICE_APPROVE_CHORE,
    SERVICE_REJECT_CHORE,
    SERVICE_ADD_JOB,
    SERVICE_UPDATE_JOB,
    SERVICE_DELETE_JOB,
    SERVICE_COMPLETE_JOB,
    SERVICE_ASSIGN_JOB,
    SERVICE_APPROVE_JOB,
    SERVICE_REJECT_JOB,
    SERVICE_APPROVE_COMPLETION,
    SERVICE_REJECT_COMPLETION,
    SERVICE_ADD_CHORE_TEMPLATE,
    SERVICE_ADD_JOB_TEMPLATE,
    SERVICE_UPDATE_TEMPLATE,
    SERVICE_DELETE_TEMPLATE,
    SERVICE_APPLY_TEMPLATE,
    SERVICE_REDEEM_CASH,
    SERVICE_ADJUST_BALANCE,
    SERVICE_AWARD_BONUS,
    SERVICE_RUN_MAINTENANCE,
    SERVICE_SET_PARENT_PATTERN,
    SERVICE_SET_RECOVERY_EMAIL,
    SERVICE_SEND_RECOVERY_CODE,
    SERVICE_VERIFY_RECOVERY_CODE,
    SERVICE_GET_JOB_STATUS,
    SERVICE_GET_TRANSACTIONS,
    SERVICE_GET_PENDING_APPROVALS,
)

# Service field names
FIELD_USER_ID = "user_id"
FIELD_CHORE_ID = "chore_id"
FIELD_JOB_ID = "job_id"
FIELD_COMPLETION_ID = "completion_id"
FIELD_TEMPLATE_ID = "template_id"
FIELD_TEMPLATE_KIND = "kind"
FIELD_USER_IDS = "user_ids"
FIELD_NAME = "name"
FIELD_TITLE = "title"
FIELD_DESCRIPTION = "description"
FIELD_ICON = "icon"
FIELD_AVATAR = "avatar"
FIELD_ROLE = "role"
FIELD_POINTS = "points"
FIELD_RECURRENCE = "recurrence"
FIELD_VALUE = "value"
FIELD_AMOUNT = "amount"
FIELD_COUNT = "count"
FIELD_DAILY_CHORES = "daily_chores"
FIELD_WEEKLY_CHORES = "weekly_chores"
FIELD_REQUIRE_ALL_CHORES = "require_all_chores"
FIELD_ALLOW_MULTIPLE = "allow_multiple_completions"
FIELD_MAX_COMPLETIONS = "max_completions_per_period"
FIELD_REQUIRES_APPROVAL = "requires_approval"
FIELD_PARENT_ID = "parent_id"
FIELD_PATTERN = "pattern"
FIELD_NEW_PATTERN = "new_pattern"
FIELD_EMAIL = "email"
FIELD_CODE = "code"
FIELD_LIMIT = "limit"

# Notifications
NOTIFY_DOMAIN = "notify"
NOTIFY_TITLE = "title"
NOTIFY_MESSAGE = "message"
NOTIFY_DATA = "data"
DISPLAY_DOT = "."
RECOVERY_NOTIFY_TITLE = "Family Economy recovery code"
RECOVERY_NOTIFY_MESSAGE_FMT = (
    "Your recovery code is {code}. It expires in {minutes} minutes."
)

# Diagnostics
TO_REDACT = {DATA_PARENT_PASSWORD, DATA_RECOVERY_EMAIL_HASH}


# ------------------------------------------------------------------------------------------------
# Sensors
# ------------------------------------------------------------------------------------------------
SENSOR_UID_SUFFIX_USER_CASH = "_cash"
SENSOR_UID_SUFFIX_JOB_STATUS = "_job_status"
SENSOR_UID_SUFFIX_PENDING_APPROVALS = "_pending_approvals"
SENSOR_UID_SUFFIX_ACTIVE_USER = "_active_user"

TRANS_KEY_SENSOR_USER_CASH = "user_cash"
TRANS_KEY_SENSOR_JOB_STATUS = "job_status"
TRANS_KEY_SENSOR_PENDING_APPROVALS = "pending_approvals"
TRANS_KEY_SENSOR_ACTIVE_USER = "active_user"

SENSOR_PLACEHOLDER_USER_NAME = "user_name"
SENSOR_PLACEHOLDER_JOB_TITLE = "job_title"

ATTR_USER_ID = "user_id"
ATTR_USER_NAME = "user_name"
ATTR_ROLE = "role"
ATTR_IS_ACTIVE = "is_active"
ATTR_CASH_CENTS = "cash_cents"
ATTR_CASH_FORMATTED = "cash_formatted"
ATTR_PENDING_BALANCE = "pending_balance"
ATTR_GEMS = "gems"
ATTR_CURRENT_STREAK = "current_streak"
ATTR_LONGEST_STREAK = "longest_streak"
ATTR_PENDING_JOBS = "pending_jobs"
ATTR_PENDING_CHORES = "pending_chores"
ATTR_APPROVERS = "approvers"

SENSOR_ICON_CASH = "mdi:cash"
SENSOR_ICON_CASH_EMPTY = "mdi:cash-remove"
SENSOR_ICON_JOB_LOCKED = "mdi:lock"
SENSOR_ICON_JOB_OPEN = "mdi:briefcase-check"
SENSOR_ICON_PENDING = "mdi:clipboard-clock"
SENSOR_ICON_PENDING_NONE = "mdi:clipboard-check"
SENSOR_ICON_ACTIVE_USER = "mdi:account-switch"

DEFAULT_TRANSACTIONS_LIMIT = 50
