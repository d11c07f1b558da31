import argparse
import os
import sys
from typing import Any, Dict

from rich_argparse import RichHelpFormatter

try:
    import tomllib
except ImportError:
    import tomli as tomllib

from .utils.helpers import is_ipv4

CONFIG_PATHS = [
    "grouphound.toml",
    "config/grouphound.toml",
    os.path.expanduser("~/.config/grouphound/grouphound.toml"),
]


class GroupHoundHelpFormatter(RichHelpFormatter):
    """Help formatter with uppercase group names and a custom color scheme."""

    styles = {
        **RichHelpFormatter.styles,
        "argparse.groups": "bold cyan",
        "argparse.args": "green",
        "argparse.metavar": "yellow",
        "argparse.help": "white",
    }

    group_name_formatter = str.upper


class OnceOnly(argparse.Action):
    """
    Custom argparse Action to prevent arguments from being specified multiple times.
    Stops a flag (e.g. -d) from being silently overridden by a second occurrence.
    Config file defaults do not count as an occurrence.
    """

    def __call__(self, parser, namespace, values, option_string=None):
        seen = f"_{self.dest}_seen"
        if getattr(namespace, seen, False):
            raise argparse.ArgumentError(self, f"Argument {option_string} can only be specified once.")
        setattr(namespace, seen, True)
        setattr(namespace, self.dest, values)


def _parse_dc_overrides(values) -> Dict[str, str]:
    """Parse DOMAIN=IP pairs into an upper-case domain -> IP map."""
    overrides = {}
    for item in values or []:
        if "=" not in item:
            raise ValueError(f"Invalid DC override '{item}', expected DOMAIN=IP")
        domain, ip = item.split("=", 1)
        overrides[domain.strip().upper()] = ip.strip()
    return overrides


def load_config(paths=None) -> Dict[str, Any]:
    """
    Load configuration from TOML files.

    Priority:
    1. ./grouphound.toml
    2. ./config/grouphound.toml
    3. ~/.config/grouphound/grouphound.toml

    Returns:
        Flat dict of argparse destination -> default value
    """
    config_data = {}
    loaded_path = None

    for path in paths or CONFIG_PATHS:
        if os.path.exists(path):
            try:
                with open(path, "rb") as f:
                    config_data = tomllib.load(f)
                loaded_path = path
                break
            except (OSError, tomllib.TOMLDecodeError) as e:
                print(f"[!] Error loading config file {path}: {e}")

    if not config_data:
        return {}

    if loaded_path == "grouphound.toml":
        print("[!] WARNING: Using grouphound.toml from current directory")
        print("[!] This can be a security risk - consider moving to config/grouphound.toml")

    defaults = {}

    # Authentication
    auth = config_data.get("authentication", {})
    for key in ("username", "password", "domain", "hashes", "kerberos", "aes_key"):
        if key in auth:
            defaults[key] = auth[key]

    # Target
    target = config_data.get("target", {})
    for key in ("dc_ip", "nameserver", "timeout", "dns_tcp"):
        if key in target:
            defaults[key] = target[key]
    if "dc_overrides" in target:
        defaults["dc_override"] = [f"{domain}={ip}" for domain, ip in target["dc_overrides"].items()]

    # Collection
    collection = config_data.get("collection", {})
    if "ldap_filter" in collection:
        defaults["ldap_filter"] = collection["ldap_filter"]
    if "threads" in collection:
        defaults["threads"] = collection["threads"]
    if "enterprise_dcs" in collection:
        defaults["no_enterprise_dcs"] = not collection["enterprise_dcs"]

    # Output
    output = config_data.get("output", {})
    for key in ("json", "csv", "no_summary", "debug", "verbose"):
        if key in output:
            defaults[key] = output[key]

    return defaults


def build_parser() -> argparse.ArgumentParser:
    ap = argparse.ArgumentParser(
        prog="grouphound",
        description="Active Directory group membership collector for attack-path graphs.",
        formatter_class=GroupHoundHelpFormatter,
    )

    # Authentication options
    auth = ap.add_argument_group("Authentication options")
    auth.add_argument("-u", "--username", action=OnceOnly, help="Username")
    auth.add_argument("-p", "--password", action=OnceOnly, help="Password (omit with -k if using Kerberos/ccache)")
    auth.add_argument("-d", "--domain", action=OnceOnly, help="Domain of the account (FQDN)")
    auth.add_argument("--hashes", help="NTLM hashes in LM:NT format (or NT-only 32-hex) to use instead of password")
    auth.add_argument("-k", "--kerberos", action="store_true", help="Use Kerberos authentication (supports ccache)")
    auth.add_argument(
        "--aes-key",
        dest="aes_key",
        help="AES key for Kerberos authentication (AES-128: 32 hex chars, AES-256: 64 hex chars). Implies -k.",
    )

    # Target selection
    target = ap.add_argument_group("Target options")
    target.add_argument(
        "--collect-domain",
        dest="collect_domain",
        help="Domain to collect memberships from (default: the account domain)",
    )
    target.add_argument("--dc-ip", help="Domain controller IP of the account domain")
    target.add_argument(
        "--dc-override",
        action="append",
        metavar="DOMAIN=IP",
        help="DC address for another domain (repeatable), used instead of DNS discovery",
    )
    target.add_argument(
        "--ns", "--nameserver",
        dest="nameserver",
        help="DNS nameserver for DC discovery. If not specified, uses system DNS.",
    )
    target.add_argument("--timeout", type=int, default=10, help="DC discovery timeout in seconds (default: 10)")
    target.add_argument(
        "--dns-tcp",
        action="store_true",
        help="Force DNS queries over TCP instead of UDP. Required when using SOCKS proxies or proxychains.",
    )

    # Collection options
    collection = ap.add_argument_group("Collection options")
    collection.add_argument(
        "--ldap-filter",
        help="LDAP filter selecting the objects to expand (default: all groups, users and computers)",
    )
    collection.add_argument(
        "--threads",
        type=int,
        default=10,
        help="Number of parallel worker threads (default: 10, 1 = sequential)",
    )
    collection.add_argument(
        "--no-enterprise-dcs",
        action="store_true",
        help="Do not emit ENTERPRISE DOMAIN CONTROLLERS memberships for the forest",
    )

    # Output options
    output = ap.add_argument_group("Output options")
    output.add_argument("--json", help="Write edges to JSON file")
    output.add_argument("--csv", help="Write edges to CSV file (GroupName,AccountName,AccountType)")
    output.add_argument("--no-summary", action="store_true", help="Do not print the summary tables")

    # Misc
    misc = ap.add_argument_group("Misc")
    misc.add_argument("--verbose", action="store_true", help="Enable verbose output")
    misc.add_argument("--debug", action="store_true", help="Enable debug output (print full stack traces)")

    defaults = load_config()
    if defaults:
        ap.set_defaults(**defaults)

    return ap


def validate_args(args):
    if not args.domain or "." not in args.domain:
        print("[!] ERROR: --domain must be a fully qualified domain name (e.g. corp.local)")
        sys.exit(1)

    if not args.username:
        print("[!] ERROR: --username is required")
        sys.exit(1)

    if not (args.password or args.hashes or args.kerberos or args.aes_key):
        print("[!] ERROR: Supply a password, --hashes, --aes-key or -k")
        sys.exit(1)

    if args.threads < 1:
        print("[!] ERROR: --threads must be at least 1")
        sys.exit(1)

    try:
        args.dc_overrides = _parse_dc_overrides(args.dc_override)
    except ValueError as e:
        print(f"[!] ERROR: {e}")
        sys.exit(1)

    if args.dc_ip and not is_ipv4(args.dc_ip):
        print(f"[!] WARNING: --dc-ip {args.dc_ip} is not an IPv4 address, it will be resolved via DNS")

    if not args.json and not args.csv:
        print("[*] No --json or --csv given, edges will only be summarized")
