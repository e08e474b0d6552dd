#!/usr/bin/env python3
"""Validate SonarQube MCP configuration and test connectivity."""

import asyncio
import sys

from sonarqube_mcp.auth.errors import PermissionConfigError
from sonarqube_mcp.auth.manager import PermissionManager
from sonarqube_mcp.settings import SonarQubeSettings
from sonarqube_mcp.sonarqube.client import SonarQubeClient


async def main() -> int:
    print("Loading settings...")
    try:
        settings = SonarQubeSettings()
    except Exception as e:
        print(f"FAIL: Could not load settings: {e}")
        print("Ensure SONARQUBE_TOKEN is set (and SONARQUBE_URL for self-hosted servers).")
        return 1

    print(f"  SONARQUBE_URL: {settings.url}")
    print(f"  SONARQUBE_ORGANIZATION: {settings.organization or '-'}")
    print(f"  SONARQUBE_TOKEN: {'*' * 8}...{settings.token[-4:]}")

    print("\nChecking permission configuration...")
    try:
        manager = PermissionManager.from_settings(settings)
    except PermissionConfigError as e:
        print(f"  FAIL: {e}")
        return 1
    if manager.service is None:
        print("  Permissions disabled (no configuration given)")
    else:
        config = manager.service.config
        print(f"  OK: {len(config.rules)} rules, default rule: {'yes' if config.default_rule else 'no'}")

    print("\nTesting connectivity...")
    client = SonarQubeClient(
        base_url=settings.url,
        token=settings.token,
        organization=settings.organization,
        timeout=settings.timeout,
        ssl_verify=settings.ssl_verify,
    )

    try:
        pong = await client.ping()
        print(f"  OK: ping -> {pong}")
        status = await client.get_status()
        print(f"  Server version {status.get('version')}, status {status.get('status')}")
        return 0
    except Exception as e:
        print(f"  FAIL: {e}")
        return 1
    finally:
        await client.close()


if __name__ == "__main__":
    sys.exit(asyncio.run(main()))
