"""Allow ``python -m barion_mcp``."""

from barion_mcp.server import main

if __name__ == "__main__":
    main()
