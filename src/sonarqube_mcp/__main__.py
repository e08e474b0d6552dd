"""Entry point for running the SonarQube MCP server: python -m sonarqube_mcp"""

import sonarqube_mcp.tools  # noqa: F401 registers all tools with the server
from sonarqube_mcp.server import mcp


def main() -> None:
    mcp.run()


if __name__ == "__main__":
    main()
