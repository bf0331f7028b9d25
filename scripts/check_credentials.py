#!/usr/bin/env python3
"""
Credential check script for the Dropbox Connector

Verifies that the configured credential file can list team members and,
optionally, act as a member, without pushing anything to the index.

Usage:
    python scripts/check_credentials.py [OPTIONS]

Examples:
    # Check the default configuration
    python scripts/check_credentials.py

    # Check a specific configuration and show up to 10 members
    python scripts/check_credentials.py --config config/test.yaml --max-members 10

    # Also fetch the account of the first listed member
    python scripts/check_credentials.py --as-member
"""

import argparse
import asyncio
import json
import sys
from datetime import datetime
from pathlib import Path
from typing import Any, Dict, List, Optional

from dotenv import load_dotenv

# Add the src directory to the Python path
sys.path.insert(0, str(Path(__file__).parent.parent / "src"))

from dropbox_connector.api_clients import DropBoxClientFactory, DropboxClientError, TeamMember
from dropbox_connector.config import ConfigurationError, load_config_from_env
from dropbox_connector.utils.logging import setup_logging, get_logger


class CredentialChecker:
    """Runs read-only checks against the Dropbox team API."""

    def __init__(self, verbose: bool = False):
        self.verbose = verbose
        self.logger = get_logger("CredentialChecker")
        self.results: Dict[str, Any] = {
            "checked_at": datetime.now().isoformat(),
            "client": {"success": False, "error": None},
            "members": {"success": False, "error": None, "listed": 0, "allowed": 0},
            "member_account": {"success": None, "error": None},
        }

    def _print_success(self, message: str):
        print(f"   ✅ {message}")

    def _print_error(self, message: str):
        print(f"   ❌ {message}")

    def _print_info(self, message: str):
        if self.verbose:
            print(f"   ℹ️  {message}")

    def _print_members(self, members: List[TeamMember], max_members: int):
        if not members:
            self._print_info("No members found")
            return

        print("   👥 Sample members:")
        for member in members[:max_members]:
            print(f"      - {member.display_name} ({member.team_member_id}, {member.status})")

        if len(members) > max_members:
            print(f"      ... and {len(members) - max_members} more members")

    async def check(
        self,
        config_file: Optional[str] = None,
        max_members: int = 5,
        as_member: bool = False
    ) -> bool:
        """Run all checks and return overall success."""
        print("\n🧪 Checking Dropbox credentials")
        print("=" * 50)

        config = load_config_from_env(config_file)
        settings = config.to_settings().dropbox

        try:
            team_client = DropBoxClientFactory.get_team_client(
                settings.credential_file,
                page_size=settings.page_size
            )
        except DropboxClientError as e:
            self.results["client"]["error"] = str(e)
            self._print_error(f"Client creation failed: {e}")
            return False

        self.results["client"]["success"] = True
        self._print_success(f"Client created from {settings.credential_file}")

        try:
            try:
                members = await team_client.get_members()
            except DropboxClientError as e:
                self.results["members"]["error"] = str(e)
                self._print_error(f"Member listing failed: {e}")
                return False

            allowed = set(settings.team_member_ids)
            selected = [m for m in members if not allowed or m.team_member_id in allowed]

            self.results["members"].update(success=True, listed=len(members), allowed=len(selected))
            self._print_success(f"Listed {len(members)} member(s), {len(selected)} pass the allow-list")
            self._print_members(selected, max_members)

            if as_member and selected:
                member = selected[0]
                self._print_info(f"Fetching account as {member.team_member_id}...")
                try:
                    account = await team_client.as_member(member.team_member_id).get_account()
                except DropboxClientError as e:
                    self.results["member_account"].update(success=False, error=str(e))
                    self._print_error(f"Member account lookup failed: {e}")
                    return False

                self.results["member_account"]["success"] = True
                self._print_success(f"Acting as member works ({account.get('email') or account.get('account_id')})")

            return True
        finally:
            team_client.close()

    def save_results(self, output_file: str):
        """Save check results to a JSON file."""
        with open(output_file, 'w') as f:
            json.dump(self.results, f, indent=2, default=str)
        print(f"📄 Results saved to: {output_file}")


async def main():
    parser = argparse.ArgumentParser(
        description="Check Dropbox Connector credentials",
        formatter_class=argparse.RawDescriptionHelpFormatter
    )
    parser.add_argument("--config", help="Configuration file path (default: config/connector.yaml)")
    parser.add_argument("--verbose", "-v", action="store_true", help="Show verbose output")
    parser.add_argument("--max-members", type=int, default=5, help="Members to print (default: 5)")
    parser.add_argument("--as-member", action="store_true", help="Also fetch the first member's account")
    parser.add_argument("--output", help="Write results to a JSON file")

    args = parser.parse_args()
    load_dotenv()

    setup_logging(log_level="DEBUG" if args.verbose else "WARNING", log_format="console")

    checker = CredentialChecker(verbose=args.verbose)
    try:
        success = await checker.check(args.config, args.max_members, args.as_member)
    except ConfigurationError as e:
        print(f"❌ Configuration error: {e}")
        sys.exit(1)

    if args.output:
        checker.save_results(args.output)

    print()
    print("🎉 Credentials look good!" if success else "⚠️  Credentials need attention")
    sys.exit(0 if success else 1)


if __name__ == "__main__":
    asyncio.run(main())
