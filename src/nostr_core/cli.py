"""CLI entrypoint for nostr-core.

Thin subcommands over the core: build and sign events, verify them, encrypt
and decrypt direct messages, build filters and wire messages, and manage
keys and mnemonics.
"""

import argparse
import json
import os
import sys

from dotenv import load_dotenv

from . import __version__
from .cli_output import (
    format_event,
    format_filter,
    format_keypair,
    format_message,
    format_mnemonic,
    format_public_key,
    format_verification_result,
)
from .config import ENV_MNEMONIC, ENV_MNEMONIC_PASSPHRASE, load_keypair, require_keypair
from .derivation import keypair_from_mnemonic
from .encryption import decrypt_direct_message
from .errors import ConfigurationError, InvalidEventError, NostrCoreError
from .event import (
    KIND_ENCRYPTED_DIRECT_MESSAGE,
    build_event,
    encrypted_direct_message,
    recommend_relay,
    set_metadata,
    sign_event,
    verify_event,
    with_subject,
)
from .filters import build_filter
from .keys import generate_keypair
from .message import CloseMessage, EventMessage, ReqMessage
from .mnemonic import generate_mnemonic
from .models import Event, KeyPair
from .nip19 import NPROFILE_PREFIX, NPUB_PREFIX, decode_nprofile, decode_npub

MNEMONIC_WORD_COUNTS = (12, 15, 18, 21, 24)


def main(argv: list[str] | None = None) -> int:
    """Main CLI entrypoint.

    CONTRACT:
      Inputs:
        - argv: list of command-line argument strings (or None to use sys.argv)

      Outputs:
        - exit_code: 0 for success, 1 for failure or an invalid signature

      Invariants:
        - A .env file, if present, is loaded before the environment is read
        - Results go to stdout, one line each
        - Errors go to stderr as "ERROR: {error_type}: {message}"

      Raises:
        - Does not raise (catches all exceptions and converts to exit codes);
          argparse usage errors still exit via SystemExit
    """
    try:
        args = parse_arguments(argv if argv is not None else sys.argv[1:])
        load_dotenv()
        return args.handler(args)

    except NostrCoreError as e:
        error_type = type(e).__name__
        sys.stderr.write(f"ERROR: {error_type}: {str(e)}\n")
        return 1
    except ValueError as e:
        sys.stderr.write(f"ERROR: {type(e).__name__}: {str(e)}\n")
        return 1
    except SystemExit:
        raise
    except Exception as e:
        sys.stderr.write(f"ERROR: {type(e).__name__}: {str(e)}\n")
        return 1


def parse_arguments(argv: list[str]) -> argparse.Namespace:
    """Parse CLI arguments; the selected subcommand is stored in args.handler."""
    parser = argparse.ArgumentParser(prog="nostr-core", description="Nostr event, key and message toolkit")
    parser.add_argument("--version", action="version", version=f"%(prog)s {__version__}")

    commands = parser.add_subparsers(dest="command", required=True)

    verify = commands.add_parser("verify", help="Verify a signed event read from stdin")
    verify.set_defaults(handler=cmd_verify)

    generate_event = commands.add_parser("generate-event", help="Build and sign an event of any kind")
    generate_event.add_argument("--kind", type=int, required=True, help="Event kind")
    generate_event.add_argument("--subject", default=None, help="Add a subject tag")
    generate_event.add_argument(
        "--tag",
        dest="tags",
        nargs="+",
        action="append",
        default=[],
        metavar="VALUE",
        help="Tag as NAME VALUE... (repeatable)",
    )
    generate_event.add_argument("content", help="Event content")
    generate_event.set_defaults(handler=cmd_generate_event)

    metadata = commands.add_parser("set-metadata", help="Build and sign a kind 0 profile event")
    metadata.add_argument("name")
    metadata.add_argument("about")
    metadata.add_argument("picture")
    metadata.set_defaults(handler=cmd_set_metadata)

    relay = commands.add_parser("recommend-relay", help="Build and sign a kind 2 relay recommendation")
    relay.add_argument("url")
    relay.set_defaults(handler=cmd_recommend_relay)

    direct = commands.add_parser("direct-message", help="Build and sign a kind 4 encrypted direct message")
    direct.add_argument("--to", dest="recipient", required=True, help="Recipient public key (hex, npub or nprofile)")
    direct.add_argument("content", help="Plaintext message")
    direct.set_defaults(handler=cmd_direct_message)

    decrypt = commands.add_parser("decrypt-message", help="Decrypt a kind 4 event read from stdin")
    decrypt.set_defaults(handler=cmd_decrypt_message)

    request = commands.add_parser("request", help="Build a subscription filter")
    request.add_argument("--ids", nargs="+", default=None)
    request.add_argument("--authors", nargs="+", default=None)
    request.add_argument("--kinds", nargs="+", type=int, default=None)
    request.add_argument("-e", dest="events", nargs="+", default=None, help="Referenced event ids")
    request.add_argument("-p", dest="profiles", nargs="+", default=None, help="Referenced public keys")
    request.add_argument("--since", type=int, default=None)
    request.add_argument("--until", type=int, default=None)
    request.add_argument("--limit", type=int, default=None)
    request.set_defaults(handler=cmd_request)

    message = commands.add_parser("generate-message", help="Wrap stdin into a client message envelope")
    message.add_argument("message_type", choices=["event", "req", "close"])
    message.add_argument("subscription_id", nargs="?", default=None, help="Subscription id (req and close)")
    message.set_defaults(handler=cmd_generate_message)

    generate_key = commands.add_parser("generate-key", help="Generate a fresh key pair")
    generate_key.add_argument("--nsec", action="store_true", help="Print bech32 nsec/npub instead of hex")
    generate_key.set_defaults(handler=cmd_generate_key)

    public_key = commands.add_parser("public-key", help="Print the configured public key")
    public_key.add_argument("--npub", action="store_true", help="Print bech32 npub instead of hex")
    public_key.set_defaults(handler=cmd_public_key)

    mnemonic = commands.add_parser("generate-mnemonic", help="Generate a BIP-39 mnemonic")
    mnemonic.add_argument("--words", type=int, choices=MNEMONIC_WORD_COUNTS, default=12)
    mnemonic.set_defaults(handler=cmd_generate_mnemonic)

    derive = commands.add_parser("derive-key", help="Derive a key pair from a mnemonic")
    derive.add_argument("--mnemonic", default=None, help=f"Mnemonic phrase (default: ${ENV_MNEMONIC})")
    derive.add_argument("--passphrase", default=None, help=f"BIP-39 passphrase (default: ${ENV_MNEMONIC_PASSPHRASE})")
    derive.add_argument("--account", type=int, default=0)
    derive.add_argument("--index", type=int, default=0)
    derive.add_argument("--nsec", action="store_true", help="Print bech32 nsec/npub instead of hex")
    derive.set_defaults(handler=cmd_derive_key)

    parsed = parser.parse_args(argv)

    if parsed.command == "generate-message" and parsed.message_type != "event" and not parsed.subscription_id:
        parser.error(f"generate-message {parsed.message_type} requires a subscription id")

    return parsed


def cmd_verify(args: argparse.Namespace) -> int:
    event = Event.from_json(read_stdin())
    valid = verify_event(event)
    print(format_verification_result(event, valid))
    return 0 if valid else 1


def cmd_generate_event(args: argparse.Namespace) -> int:
    event = with_subject(build_event(args.kind, args.content, args.tags), args.subject)
    print(format_event(sign_event(event, signing_keypair().secret)))
    return 0


def cmd_set_metadata(args: argparse.Namespace) -> int:
    event = set_metadata(args.name, args.about, args.picture)
    print(format_event(sign_event(event, signing_keypair().secret)))
    return 0


def cmd_recommend_relay(args: argparse.Namespace) -> int:
    print(format_event(sign_event(recommend_relay(args.url), signing_keypair().secret)))
    return 0


def cmd_direct_message(args: argparse.Namespace) -> int:
    keypair = signing_keypair()
    event = encrypted_direct_message(args.content, keypair.secret, parse_public_key_argument(args.recipient))
    print(format_event(sign_event(event, keypair.secret)))
    return 0


def cmd_decrypt_message(args: argparse.Namespace) -> int:
    """Decrypt a kind 4 event as either its author or its recipient.

    The peer is the event author, unless the configured key is the author,
    in which case the peer is the first "p" tag.
    """
    keypair = require_keypair()
    event = Event.from_json(read_stdin())
    if event.kind != KIND_ENCRYPTED_DIRECT_MESSAGE:
        raise InvalidEventError(f"expected kind {KIND_ENCRYPTED_DIRECT_MESSAGE}, got {event.kind}")

    peer = event.pubkey
    if peer == keypair.public_hex:
        recipients = [tag[1] for tag in event.tags if len(tag) >= 2 and tag[0] == "p"]
        if not recipients:
            raise InvalidEventError("direct message has no 'p' tag")
        peer = recipients[0]

    print(decrypt_direct_message(event.content, keypair.secret, peer))
    return 0


def cmd_request(args: argparse.Namespace) -> int:
    filter_ = build_filter(
        ids=args.ids,
        authors=args.authors,
        kinds=args.kinds,
        events=args.events,
        profiles=args.profiles,
        since=args.since,
        until=args.until,
        limit=args.limit,
    )
    print(format_filter(filter_))
    return 0


def cmd_generate_message(args: argparse.Namespace) -> int:
    if args.message_type == "close":
        message = CloseMessage(subscription_id=args.subscription_id)
    elif args.message_type == "req":
        filters = json.loads(read_stdin())
        if isinstance(filters, dict):
            filters = [filters]
        message = ReqMessage(subscription_id=args.subscription_id, filters=tuple(filters))
    else:
        message = EventMessage(event=Event.from_json(read_stdin()), subscription_id=args.subscription_id)
    print(format_message(message))
    return 0


def cmd_generate_key(args: argparse.Namespace) -> int:
    print(format_keypair(generate_keypair(), bech32=args.nsec))
    return 0


def cmd_public_key(args: argparse.Namespace) -> int:
    print(format_public_key(require_keypair(), bech32=args.npub))
    return 0


def cmd_generate_mnemonic(args: argparse.Namespace) -> int:
    print(format_mnemonic(generate_mnemonic(args.words * 32 // 3)))
    return 0


def cmd_derive_key(args: argparse.Namespace) -> int:
    phrase = args.mnemonic or os.environ.get(ENV_MNEMONIC)
    if not phrase:
        raise ConfigurationError(f"no mnemonic given; pass --mnemonic or set {ENV_MNEMONIC}")

    passphrase = args.passphrase if args.passphrase is not None else os.environ.get(ENV_MNEMONIC_PASSPHRASE, "")
    keypair = keypair_from_mnemonic(phrase, passphrase, args.account, args.index)
    print(format_keypair(keypair, bech32=args.nsec))
    return 0


def signing_keypair() -> KeyPair:
    """Return the configured key pair, or a fresh one with a warning."""
    keypair = load_keypair()
    if keypair is None:
        sys.stderr.write("WARNING: no signing key configured, signing with a freshly generated key\n")
        keypair = generate_keypair()
    return keypair


def parse_public_key_argument(value: str) -> str:
    """Accept a public key as hex, npub or nprofile."""
    if value.startswith(NPUB_PREFIX + "1"):
        return decode_npub(value)
    if value.startswith(NPROFILE_PREFIX + "1"):
        return decode_nprofile(value).pubkey
    return value


def read_stdin() -> str:
    return sys.stdin.read()


if __name__ == "__main__":
    sys.exit(main())
