#!/usr/bin/env python3
"""
Blakley Share CLI — threshold secret sharing over GF(2^8) hyperplanes.

Usage:
    cli.py split --message "secret" -n 5 -k 3 [--output ./shares/]
    cli.py combine --shares share_001.txt share_002.txt share_003.txt [--output secret.bin]
    cli.py seal --file secret.pdf -n 5 -k 3 [--output ./vaults/]
    cli.py unseal --shares s1.txt s2.txt s3.txt --ciphertext ciphertext.bin
    cli.py verify --shares s1.txt s2.txt s3.txt
    cli.py inspect --vault ./vaults/<vault_id>/
"""

import argparse
import logging
import os
import sys

from blakley import codec, crypto, scheme, vault

logger = logging.getLogger('blakley.cli')


def _read_payload(args):
    """Return (payload, label) from --message, --file or stdin."""
    if args.message:
        return args.message.encode('utf-8'), '(text message)'
    if args.file:
        with open(args.file, 'rb') as f:
            return f.read(), os.path.basename(args.file)
    return sys.stdin.buffer.read(), '(stdin)'


def _save_shares(shares, directory):
    """
    Write each armored share to share_<index>.txt, named by the index it
    carries. Refuses to overwrite existing share files.
    """
    os.makedirs(directory, exist_ok=True)
    paths = []
    for share_str in shares:
        _, index, _ = codec.parse_share(share_str)
        path = os.path.join(directory, f"share_{index:03d}.txt")
        with open(path, 'x') as f:
            f.write(share_str + '\n')
        paths.append(path)
    return paths


def _load_shares(paths):
    shares = []
    for p in paths:
        with open(p) as f:
            shares.append(f.read().strip())
    return shares


def _write_output(data: bytes, output: str) -> None:
    if output:
        with open(output, 'wb') as f:
            f.write(data)
        print(f"Saved to: {output}")
        return
    try:
        text = data.decode('utf-8')
        print(f"\n--- Secret ---\n{text}\n--- End ---")
    except UnicodeDecodeError:
        print("\n(Binary secret, use --output to save to file)")
        print(f"First 64 bytes hex: {data[:64].hex()}")


def cmd_split(args):
    """Split a secret into armored share files."""
    payload, _ = _read_payload(args)
    if not payload:
        print("Error: empty secret", file=sys.stderr)
        return 1

    n, k = args.shares, args.threshold
    print(f"Splitting {len(payload)} bytes, {k}-of-{n} threshold")

    raw = scheme.split(payload, n, k)
    set_id = codec.new_set_id()
    shares = [codec.format_share(set_id, i, s) for i, s in enumerate(raw, 1)]

    paths = _save_shares(shares, args.output or 'shares')
    print(f"Set ID: {set_id}")
    print(f"Share size: {len(raw[0])} bytes")
    print(f"Shares written: {len(paths)} files in {os.path.dirname(paths[0])}/")

    if args.print_shares:
        print("\nShares:")
        for i, s in enumerate(shares, 1):
            print(f"  [{i}] {s}")
    return 0


def cmd_combine(args):
    """Reconstruct a secret from armored share files."""
    armored = _load_shares(args.shares)

    set_ids = set()
    raw = []
    for share_str in armored:
        sid, _, share = codec.parse_share(share_str)
        set_ids.add(sid)
        raw.append(share)
    if len(set_ids) > 1:
        print(f"Error: shares come from different splits: {sorted(set_ids)}", file=sys.stderr)
        return 1

    secret = scheme.combine(raw)
    print(f"Reconstruction successful! Secret: {len(secret)} bytes")
    _write_output(secret, args.output)
    return 0


def cmd_seal(args):
    """Encrypt a payload and split its key."""
    payload, label = _read_payload(args)
    if not payload:
        print("Error: empty payload", file=sys.stderr)
        return 1

    n, k = args.shares, args.threshold
    print(f"Sealing vault: {len(payload)} bytes, {k}-of-{n} threshold")
    print(f"Crypto backend: {crypto.get_backend()}")

    v, shares = vault.seal(payload, n, k, label=args.label or label)
    files = vault.save_vault(v, args.output or '.')
    share_files = _save_shares(shares, os.path.join(files['directory'], 'shares'))

    print(f"Vault ID: {v.vault_id}")
    print(f"\nVault saved to: {files['directory']}/")
    print("  Metadata:    vault.json")
    print("  Ciphertext:  ciphertext.bin")
    print(f"  Shares:      shares/ ({len(share_files)} files)")
    print(f"\nNeed {k} of {n} shares to unseal. Distribute the shares and delete local copies.")

    if args.print_shares:
        print("\nShares:")
        for i, s in enumerate(shares, 1):
            print(f"  [{i}] {s}")
    return 0


def cmd_unseal(args):
    """Open a vault from shares + ciphertext."""
    shares = _load_shares(args.shares)
    with open(args.ciphertext, 'rb') as f:
        ct = f.read()

    print(f"Unsealing with {len(shares)} shares")
    plaintext = vault.unseal(shares, ct)
    print(f"Unseal successful! Payload: {len(plaintext)} bytes")
    _write_output(plaintext, args.output)
    return 0


def cmd_verify(args):
    """Verify shares without reconstructing."""
    result = vault.verify_shares(_load_shares(args.shares))

    print(f"Valid:       {result['valid']}")
    print(f"Set ID:      {result['set_id']}")
    print(f"Shares:      {result['share_count']}")
    print(f"Threshold:   {result['threshold']}")
    print(f"Indices:     {result['indices']}")

    if result['errors']:
        print("\nErrors:")
        for e in result['errors']:
            print(f"  - {e}")

    return 0 if result['valid'] else 1


def cmd_inspect(args):
    """Show a saved vault's metadata."""
    v = vault.load_vault(args.vault)

    print(f"Vault:      {v.vault_id}")
    print(f"Threshold:  {v.threshold}-of-{v.parts}")
    print(f"Ciphertext: {len(v.ciphertext)} bytes")
    print(f"Created:    {v.created_at}")

    m = v.metadata
    if m:
        print("\nMetadata:")
        print(f"  Payload size:  {m.get('payload_size', '?')} bytes")
        print(f"  Payload hash:  {m.get('payload_hash', '?')}")
        print(f"  Share size:    {m.get('share_size', '?')} bytes")
        print(f"  Crypto:        {m.get('crypto_backend', '?')}")
        if m.get('label'):
            print(f"  Label:         {m['label']}")

    shares_dir = os.path.join(args.vault, 'shares')
    if os.path.isdir(shares_dir):
        count = len([f for f in os.listdir(shares_dir) if f.startswith('share_')])
        print(f"\nWarning: {count} shares still on disk. Distribute and delete them.")
    return 0


def build_parser():
    parser = argparse.ArgumentParser(
        prog='blakley',
        description="Blakley Share — threshold secret sharing over GF(2^8) hyperplanes.",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  # Split a short secret (3-of-5)
  %(prog)s split --message "launch code" -n 5 -k 3 --output ./shares/

  # Reconstruct from any 3 shares
  %(prog)s combine --shares shares/share_001.txt shares/share_004.txt shares/share_005.txt

  # Seal a file in an encrypted vault (2-of-3)
  %(prog)s seal --file evidence.pdf -n 3 -k 2 --output ./vaults/

  # Unseal it
  %(prog)s unseal --shares s1.txt s2.txt --ciphertext ./vaults/<id>/ciphertext.bin -o out.pdf
        """
    )
    parser.add_argument('-v', '--verbose', action='store_true', help='Debug logging')

    sub = parser.add_subparsers(dest='command', help='Command')

    for name, help_text in (('split', 'Split a secret into shares'),
                            ('seal', 'Encrypt a payload and split its key')):
        p = sub.add_parser(name, help=help_text)
        p.add_argument('--message', '-m', help='Text secret')
        p.add_argument('--file', '-f', help='File containing the secret')
        p.add_argument('--shares', '-n', type=int, required=True, help='Total shares (N)')
        p.add_argument('--threshold', '-k', type=int, required=True, help='Threshold (T)')
        p.add_argument('--output', '-o', help='Output directory')
        p.add_argument('--print-shares', action='store_true', help='Print shares to stdout')
        if name == 'seal':
            p.add_argument('--label', '-l', help='Human-readable label')

    p_combine = sub.add_parser('combine', help='Reconstruct a secret from shares')
    p_combine.add_argument('--shares', '-s', nargs='+', required=True, help='Share files')
    p_combine.add_argument('--output', '-o', help='Output file (default: print)')

    p_unseal = sub.add_parser('unseal', help='Open a vault from shares + ciphertext')
    p_unseal.add_argument('--shares', '-s', nargs='+', required=True, help='Share files')
    p_unseal.add_argument('--ciphertext', '-c', required=True, help='Ciphertext file')
    p_unseal.add_argument('--output', '-o', help='Output file (default: print)')

    p_verify = sub.add_parser('verify', help='Verify shares without reconstructing')
    p_verify.add_argument('--shares', '-s', nargs='+', required=True, help='Share files')

    p_inspect = sub.add_parser('inspect', help='Inspect a saved vault')
    p_inspect.add_argument('--vault', '-d', required=True, help='Vault directory')

    return parser


def main(argv=None):
    parser = build_parser()
    args = parser.parse_args(argv)

    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.WARNING,
        format='%(levelname)s %(name)s: %(message)s',
    )

    if not args.command:
        parser.print_help()
        return 1

    handlers = {
        'split': cmd_split,
        'combine': cmd_combine,
        'seal': cmd_seal,
        'unseal': cmd_unseal,
        'verify': cmd_verify,
        'inspect': cmd_inspect,
    }

    try:
        return handlers[args.command](args)
    except (ValueError, OSError, RuntimeError) as e:
        logger.debug("%s failed", args.command, exc_info=True)
        print(f"Error: {e}", file=sys.stderr)
        return 1


if __name__ == '__main__':
    sys.exit(main())
