import os
import logging


class DemanglerConfig(object):

    # note to self: always change this in setup.py as well!
    VERSION = "0.3.1"
    CONFIG_FILE_PATH = str(os.path.abspath(__file__))
    PROJECT_ROOT = str(os.path.abspath(os.sep.join([CONFIG_FILE_PATH, "..", ".."])))

    # Logging
    LOG_LEVEL = logging.INFO
    LOG_FORMAT = "%(asctime)-15s: %(name)-32s - %(message)s"

    # Decoding budgets, applied per symbol.
    # nesting of paths, types, consts and back-reference jumps
    MAX_DEPTH = 300
    # total grammar productions consumed, including re-walked back-references
    MAX_WORK = 100000
    # characters of rendered output
    MAX_OUTPUT_SIZE = 1000000
