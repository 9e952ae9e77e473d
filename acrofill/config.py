"""
Configuration constants for the acrofill engine.
Consolidates flag bits, vocabularies and save options in one place.
"""

# Logging
LOG_ENV_VAR = "ACROFILL_LOG"
DEFAULT_LOG_LEVEL = "INFO"
LOG_FORMAT = "[%(levelname)s] %(name)s: %(message)s"

# Field flag bits (/Ff), PDF 1.7 section 12.7.3
REQUIRED_FLAG = 0x02
MULTILINE_FLAG = 1 << 12  # text fields
COMBO_EDIT_FLAG = 1 << 18  # choice fields
RADIO_FLAG = 1 << 15  # button fields
PUSHBUTTON_FLAG = 1 << 16

# Checkbox values that mean "checked" (compared lower-cased and trimmed)
CHECKED_VALUES = frozenset({"true", "yes", "1", "on", "x"})

# Button states that mean "not selected"
OFF_STATES = frozenset({"off", "false", ""})

# Keyword arguments for fitz.Document.tobytes when serialising a filled form
SAVE_OPTIONS = {"garbage": 3, "deflate": True}
