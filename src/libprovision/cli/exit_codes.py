"""Exit codes for the libprovision CLI."""

EXIT_SUCCESS = 0
EXIT_PROVISIONING_FAILED = 1
EXIT_ISSUES_FOUND = 1
EXIT_INVALID_USAGE = 3
