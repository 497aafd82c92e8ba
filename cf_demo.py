#!/usr/bin/env python3
"""
Demo for the configuration store.

Fills a small store, shows what happens when it runs out of slots, writes
it to test.cf, reads it back into a bigger store and prints typed values.
"""

import argparse
import logging
import os
import sys

from cf_module import (
    CFError, CFStore, CF_TRUE, CF_FALSE,
    cf_create, cf_destroy, cf_set_key, cf_get_key, cf_set_bool, cf_set_str,
    cf_get_all, cf_get_bool, cf_get_int, cf_get_uint, cf_get_str, cf_print_keys
)
from cf_text_module import cf_read, cf_write


def set_key(cf: CFStore, key: str, value: str) -> None:
    """Set a raw value and show the result."""
    try:
        cf_set_key(cf, key, value)
        print(f"Set {key} = {value}")
    except CFError as e:
        print(f"Set {key} = {value} --> ERROR ({e})")


def set_bool(cf: CFStore, key: str, value: bool) -> None:
    text = CF_TRUE if value else CF_FALSE
    try:
        cf_set_bool(cf, key, value)
        print(f"Set {key} = {text}")
    except CFError as e:
        print(f"Set {key} = {text} --> ERROR ({e})")


def set_str(cf: CFStore, key: str, value: str) -> None:
    try:
        cf_set_str(cf, key, value)
        print(f'Set {key} = "{value}"')
    except CFError as e:
        print(f'Set {key} = "{value}" --> ERROR ({e})')


def pr_keys(cf: CFStore) -> None:
    cf_print_keys(cf)
    print()


def pr_one_key(key: str, value: str) -> bool:
    print(f"{key} = {value}")
    return False


def run_demo(workdir: str) -> None:
    """Run the demo, writing test.cf in workdir."""
    filename = os.path.join(workdir, "test.cf")

    print("Creating CF\n")
    cf = cf_create(6)

    set_key(cf, "title", "That's cool!")
    set_key(cf, "author", "Jim Brown")
    set_key(cf, "year", "1969")
    set_key(cf, "pages", "150")
    set_str(cf, "summary", "This book, blah, blah, blah...")
    set_bool(cf, "lent", True)

    # This one doesn't fit
    set_key(cf, "publisher", "This should cause an error: no more entries")

    print()
    pr_keys(cf)

    set_key(cf, "year", "1977")

    print()
    pr_keys(cf)

    print(f"Writing {filename}\n")
    cf_write(cf, filename)

    print("Destroying CF\n")
    cf_destroy(cf)

    print("Creating CF\n")
    cf = cf_create(8)

    print(f"Reading {filename} into CF\n")
    cf_read(cf, filename, preserve_comments=True)
    pr_keys(cf)

    cf_get_all(cf, pr_one_key)
    print()

    print(f"Title     >> {cf_get_key(cf, 'title')}")
    print(f"Author    >> {cf_get_str(cf, 'author', 'unknown')}")
    print(f"Publisher >> {cf_get_str(cf, 'publisher', 'n/a')}")
    print(f"Year      >> {cf_get_uint(cf, 'year', 9999)}")
    print(f"Pages     >> {cf_get_int(cf, 'pages', 9999)}")
    print(f"Summary   >> {cf_get_str(cf, 'summary', 'n/a')}")
    print(f"Lent      >> {'Yes' if cf_get_bool(cf, 'lent', False) else 'No'}")
    print(f"To        >> {cf_get_key(cf, 'lent_to')}")
    print(f"Expires   >> {cf_get_key(cf, 'lend_expires')}")
    print()

    print("Destroying CF\n")
    cf_destroy(cf)


def main(argv=None) -> int:
    """Main function"""
    parser = argparse.ArgumentParser(description="Configuration store demo")
    parser.add_argument("--workdir", default=".",
                        help="Directory where test.cf is written (default: .)")
    parser.add_argument("--verbose", action="store_true", help="Show debug logging")
    args = parser.parse_args(argv)

    logging.basicConfig(level=logging.DEBUG if args.verbose else logging.WARNING,
                        format="%(levelname)s %(name)s: %(message)s")

    try:
        run_demo(args.workdir)
    except CFError as e:
        print(f"ERROR: {e}")
        return 1

    print("Done")
    return 0


if __name__ == "__main__":
    sys.exit(main())
