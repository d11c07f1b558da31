import os
import sys
import traceback

from .auth import AuthContext
from .config import build_parser, validate_args
from .directory import DirectoryError, LdapDirectory
from .engine import CollectorConfig, MembershipCollector, ResolutionContext, aggregate_results
from .engine.collector import DEFAULT_OBJECT_FILTER
from .output.writer import count_edges_by_type, write_csv, write_json
from .utils.console import print_banner, print_membership_summary, print_output_section
from .utils.logging import debug, error, set_verbosity, status


def _auth_from_args(args) -> AuthContext:
    return AuthContext(
        username=args.username,
        password=args.password,
        domain=args.domain,
        hashes=args.hashes,
        aes_key=args.aes_key,
        kerberos=args.kerberos,
        dc_ip=args.dc_ip,
        dc_overrides=getattr(args, "dc_overrides", {}),
        dns_tcp=args.dns_tcp,
        nameserver=args.nameserver,
        timeout=args.timeout,
    )


def main():
    print_banner()
    ap = build_parser()
    args = ap.parse_args()

    # GROUPHOUND_DEBUG=1 forces debug output without the flag
    args.debug = args.debug or bool(os.getenv("GROUPHOUND_DEBUG"))
    set_verbosity(args.verbose, args.debug)
    validate_args(args)

    auth = _auth_from_args(args)
    directory = LdapDirectory(auth)
    context = ResolutionContext.for_directory(directory)
    collector = MembershipCollector(
        context,
        CollectorConfig(
            workers=args.threads,
            show_progress=not args.debug,
            enterprise_dcs=not args.no_enterprise_dcs,
        ),
    )

    domain = args.collect_domain or args.domain
    status(f"[*] Collecting group memberships from {domain.upper()}")

    try:
        collection = collector.collect_domain(domain, args.ldap_filter or DEFAULT_OBJECT_FILTER)
    except DirectoryError as e:
        error(f"Collection failed: {e}")
        if args.debug:
            traceback.print_exc()
        directory.close()
        sys.exit(1)
    except KeyboardInterrupt:
        error("Interrupted")
        directory.close()
        sys.exit(130)

    edges, failed = aggregate_results(collection)
    debug(f"Collected {len(edges)} edges, {len(failed)} failed objects")

    if args.json:
        write_json(args.json, edges)
        print_output_section(args.json, len(edges))
    if args.csv:
        write_csv(args.csv, edges)
        print_output_section(args.csv, len(edges))

    if not args.no_summary:
        print_membership_summary(count_edges_by_type(edges), failed)

    context.cache.print_stats()
    directory.close()


if __name__ == "__main__":
    main()
