"""Constants used throughout Brancher."""

# Version
VERSION = "0.1.0"

# Directory names
BRANCHER_DIR = ".brancher"
OBJECTS_DIR = "objects"
REFS_DIR = "refs"

# File names
HEAD_FILE = "HEAD"
INDEX_FILE = "index"

# Branches
DEFAULT_BRANCH = "main"
REFS_PREFIX = "refs/"

# Hash algorithm
HASH_ALGORITHM = "sha1"
HASH_LENGTH = 40  # SHA-1 produces 40 hex characters
MIN_ABBREV_LENGTH = 4
SHORT_HASH_LENGTH = 7

# Exit codes
EXIT_SUCCESS = 0
EXIT_USER_ERROR = 1
EXIT_SYSTEM_ERROR = 2
EXIT_DATA_ERROR = 3
EXIT_INTERRUPTED = 130
