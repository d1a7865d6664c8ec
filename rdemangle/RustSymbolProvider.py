#!/usr/bin/python

import logging
import os

import lief

from .DemanglerConfig import DemanglerConfig
from .exceptions import DemangleError
from .printer import RenderStyle
from .rust import RustDemangler

lief.logging.disable()

LOGGER = logging.getLogger(__name__)

# IMAGE_SCN_MEM_EXECUTE
PE_SECTION_EXECUTABLE = 0x20000000
# strings rustc and its standard library leave behind in a binary
RUST_SIGNATURES = [b"RUST_BACKTRACE", b"RUST_MIN_STACK", b"/rustc/"]
# bare "R" and "ZN" prefixes are too broad for symbol tables mixing languages
RUST_SYMBOL_PREFIXES = ("_ZN", "_R", "__ZN", "__R")


class RustSymbolProvider(object):
    """Collects the demangled names of Rust function symbols found in an ELF or PE binary"""

    def __init__(self, config=None, style=RenderStyle.NO_HASH):
        self._config = config if config is not None else DemanglerConfig()
        self._demangler = RustDemangler(self._config)
        self._style = style
        # addr:func_name
        self._func_symbols = {}

    def update(self, binary):
        """Parse the given binary, either its raw bytes or a path to it"""
        self._func_symbols = {}
        data = self._get_binary_data(binary)
        if not data:
            return
        try:
            lief_binary = lief.parse(data)
        except Exception as exc:
            LOGGER.debug("Failed to parse binary with LIEF: %s", type(exc).__name__)
            return

        if isinstance(lief_binary, lief.ELF.Binary):
            self._func_symbols.update(self._parse_lief_symbols(lief_binary.symtab_symbols))
            self._func_symbols.update(self._parse_lief_symbols(lief_binary.dynamic_symbols))
        elif isinstance(lief_binary, lief.PE.Binary):
            self._func_symbols.update(self._parse_pe_exports(lief_binary))
            for address, name in self._parse_coff_symbols(lief_binary).items():
                # exports take precedence
                self._func_symbols.setdefault(address, name)
        else:
            LOGGER.debug("Neither ELF nor PE, no symbols to collect")
        LOGGER.debug("Collected %d Rust function symbols", len(self._func_symbols))

    def is_rust_binary(self, binary):
        """Checks for strings the Rust toolchain embeds into its output"""
        data = self._get_binary_data(binary)
        if not data:
            return False
        return any(sig in data for sig in RUST_SIGNATURES)

    def _get_binary_data(self, binary):
        if isinstance(binary, (bytes, bytearray)):
            return bytes(binary)
        if isinstance(binary, (str, os.PathLike)):
            try:
                with open(binary, "rb") as fin:
                    return fin.read()
            except OSError as exc:
                LOGGER.debug("Failed to read binary from path %s: %s", binary, exc)
        return None

    def _is_rust_symbol(self, name):
        return name.startswith(RUST_SYMBOL_PREFIXES)

    def _demangle(self, raw_name):
        if not self._is_rust_symbol(raw_name):
            return None
        try:
            return self._demangler.try_demangle(raw_name, self._style)
        except DemangleError as exc:
            LOGGER.debug("Failed to demangle Rust symbol %s: %s", raw_name, exc)
        return None

    def _parse_lief_symbols(self, symbols):
        function_symbols = {}
        for symbol in symbols:
            if symbol is None or not symbol.is_function or symbol.value == 0:
                continue
            demangled = self._demangle(symbol.name)
            if demangled:
                function_symbols[symbol.value] = demangled
        return function_symbols

    def _parse_pe_exports(self, lief_binary):
        function_symbols = {}
        for function in lief_binary.exported_functions:
            demangled = self._demangle(function.name)
            if demangled:
                function_symbols[lief_binary.imagebase + function.address] = demangled
        return function_symbols

    def _parse_coff_symbols(self, lief_binary):
        function_symbols = {}
        code_base_address = None
        for section in lief_binary.sections:
            if section.characteristics & PE_SECTION_EXECUTABLE:
                code_base_address = lief_binary.imagebase + section.virtual_address
                break
        if code_base_address is None:
            return function_symbols

        for symbol in lief_binary.symbols:
            if getattr(symbol.complex_type, "name", None) != "FUNCTION":
                continue
            demangled = self._demangle(symbol.name)
            if demangled:
                function_symbols[code_base_address + symbol.value] = demangled
        return function_symbols

    def getSymbol(self, address):
        return self._func_symbols.get(address, "")

    def getFunctionSymbols(self):
        return self._func_symbols
