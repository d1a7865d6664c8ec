import argparse
import logging
import sys

from rdemangle.DemanglerConfig import DemanglerConfig
from rdemangle.printer import RenderStyle
from rdemangle.rust import RustDemangler
from rdemangle.RustSymbolProvider import RustSymbolProvider
from rdemangle.stream import demangle_stream


def printBinarySymbols(config, binary_path, style):
    provider = RustSymbolProvider(config, style=style)
    if not provider.is_rust_binary(binary_path):
        logging.warning("No traces of the Rust toolchain found in %s, continuing anyway.", binary_path)
    provider.update(binary_path)
    for address, name in sorted(provider.getFunctionSymbols().items()):
        print("0x{:08x}: {}".format(address, name))


if __name__ == "__main__":
    PARSER = argparse.ArgumentParser(description='Demo: Replace mangled Rust symbols in the given files (or stdin) by their demangled names.')
    PARSER.add_argument('-s', '--style', type=str, default='verbose', choices=[style.value for style in RenderStyle], help='Level of detail of the demangled names (default: verbose).')
    PARSER.add_argument('-b', '--binary', type=str, default='', help='Instead of filtering text, list the demangled Rust function symbols of the given ELF/PE file.')
    PARSER.add_argument('-v', '--verbose', action='store_true', default=False, help='Enable debug logging.')
    PARSER.add_argument('input_paths', type=str, nargs='*', help='Text files to filter, stdin if none are given.')

    ARGS = PARSER.parse_args()

    config = DemanglerConfig()
    if ARGS.verbose:
        config.LOG_LEVEL = logging.DEBUG
    logging.basicConfig(level=config.LOG_LEVEL, format=config.LOG_FORMAT)

    STYLE = RenderStyle(ARGS.style)
    if ARGS.binary:
        printBinarySymbols(config, ARGS.binary, STYLE)
        sys.exit(0)

    DEMANGLER = RustDemangler(config)
    if not ARGS.input_paths:
        demangle_stream(sys.stdin, sys.stdout, STYLE, DEMANGLER)
    for input_path in ARGS.input_paths:
        logging.info("now filtering %s", input_path)
        with open(input_path, "r", encoding="utf-8", errors="replace") as fin:
            demangle_stream(fin, sys.stdout, STYLE, DEMANGLER)
