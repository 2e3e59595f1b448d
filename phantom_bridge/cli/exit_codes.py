"""Standard exit codes for the phantom-bridge CLI.

Every ``BridgeError`` subclass carries one of these codes so scripts can
tell a missing binary from a slow engine or a faulting remote call.
"""


class ExitCode:
    """Standard exit codes for the phantom-bridge CLI.

    These codes follow common Unix conventions where possible:
    - 0: Success
    - 1: General error
    - 130: Script terminated by Ctrl+C (SIGINT)

    Bridge-specific codes start at 2:
    - 2: Configuration error
    - 3: Spawn error (binary or script could not be started)
    - 4: Readiness timeout
    - 5: Transport error
    - 6: Remote error (the engine-side handler faulted)
    - 7: Protocol error
    - 8: Not found
    - 9: Teardown error
    - 10: Navigation failed
    """

    SUCCESS = 0
    GENERAL_ERROR = 1

    CONFIGURATION_ERROR = 2
    SPAWN_ERROR = 3
    READINESS_TIMEOUT = 4
    TRANSPORT_ERROR = 5
    REMOTE_ERROR = 6
    PROTOCOL_ERROR = 7
    NOT_FOUND = 8
    TEARDOWN_ERROR = 9
    NAVIGATION_ERROR = 10

    CANCELLED = 130  # Ctrl+C (SIGINT = 2)

    @classmethod
    def get_name(cls, code: int) -> str:
        """Get the name of an exit code.

        Args:
            code: The exit code value

        Returns:
            Human-readable name for the exit code
        """
        names = {
            cls.SUCCESS: "SUCCESS",
            cls.GENERAL_ERROR: "GENERAL_ERROR",
            cls.CONFIGURATION_ERROR: "CONFIGURATION_ERROR",
            cls.SPAWN_ERROR: "SPAWN_ERROR",
            cls.READINESS_TIMEOUT: "READINESS_TIMEOUT",
            cls.TRANSPORT_ERROR: "TRANSPORT_ERROR",
            cls.REMOTE_ERROR: "REMOTE_ERROR",
            cls.PROTOCOL_ERROR: "PROTOCOL_ERROR",
            cls.NOT_FOUND: "NOT_FOUND",
            cls.TEARDOWN_ERROR: "TEARDOWN_ERROR",
            cls.NAVIGATION_ERROR: "NAVIGATION_ERROR",
            cls.CANCELLED: "CANCELLED",
        }
        return names.get(code, f"UNKNOWN({code})")

    @classmethod
    def get_description(cls, code: int) -> str:
        """Get the description of an exit code."""
        descriptions = {
            cls.SUCCESS: "Operation completed successfully",
            cls.GENERAL_ERROR: "An unexpected error occurred",
            cls.CONFIGURATION_ERROR: "Configuration error or invalid config file",
            cls.SPAWN_ERROR: "The engine process or its script could not be created",
            cls.READINESS_TIMEOUT: "The engine never answered the liveness probe",
            cls.TRANSPORT_ERROR: "The HTTP exchange with the engine failed",
            cls.REMOTE_ERROR: "The engine raised an error while handling the call",
            cls.PROTOCOL_ERROR: "The engine response did not match the protocol",
            cls.NOT_FOUND: "Unknown RPC path or released handle",
            cls.TEARDOWN_ERROR: "The engine process could not be cleaned up",
            cls.NAVIGATION_ERROR: "The page could not be opened",
            cls.CANCELLED: "Operation cancelled by user",
        }
        return descriptions.get(code, f"Unknown exit code: {code}")
