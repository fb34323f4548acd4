# Shared patterns and defaults
IDENT = r"[A-Za-z_$][\w$]*"

# Directory names skipped when scanning (each becomes **/<name>/**)
DEFAULT_IGNORE = "node_modules .git dist eslintrc"
DEFAULT_EXTENSIONS = (".js",)

PROG = "cjs2esm"
# a require() call, not a member named require
REQUIRE_CALL = r"(?<![\w$.])require\s*\("
