"""Survey constants shared across the SDK.

These values are referenced by the node models, the branch evaluator and the
navigator.  They mirror conventions of the Appgram portal API.

A few constants can be overridden via environment variables so that
integrators can tune behaviour without code changes.
"""

import os

# Question types whose answer is free text (answer_text).
TEXT_TYPES: set[str] = {"short_answer", "paragraph"}

# Question types whose answer is a list of option values (answer_options).
CHOICE_TYPES: set[str] = {"multiple_choice", "checkboxes"}

# Branch condition operators understood by the evaluator.
CONDITION_TYPES: tuple[str, ...] = ("equals", "contains", "gt", "lt", "gte", "lte")

# Default inclusive bounds for rating questions without explicit limits.
DEFAULT_MIN_RATING = 1
DEFAULT_MAX_RATING = 5

# Text answer that counts as "yes" for yes_no legacy routing.
YES_TEXT = "yes"

# Upper bound on the navigation path.  Survey graphs are expected to be
# acyclic; when a cyclic graph keeps pushing nodes the navigator ends the
# survey once the path reaches this length.
# Overridable via APPGRAM_MAX_PATH_LENGTH env var.
MAX_PATH_LENGTH = int(os.getenv("APPGRAM_MAX_PATH_LENGTH", "500"))

# Message shown after a response has been accepted by the submitter.
# Overridable via APPGRAM_SUCCESS_MESSAGE env var.
DEFAULT_SUCCESS_MESSAGE = os.getenv(
    "APPGRAM_SUCCESS_MESSAGE", "Survey response submitted successfully."
)
