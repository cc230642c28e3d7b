# Logging module for vCD Import/Export
################################################################################
### Copyright 2020-2023 VMware, Inc.
### SPDX-License-Identifier: BSD-2-Clause
################################################################################
import logging
import sys

import colorlog

LOGGER_NAME = 'vcd'

# Run summaries sit between INFO and WARNING so they survive a WARNING threshold
SUMMARY = 25
logging.addLevelName(SUMMARY, 'SUMMARY')

LOG_COLORS = {
    'DEBUG': 'white',
    'INFO': 'green',
    'SUMMARY': 'cyan',
    'WARNING': 'yellow',
    'ERROR': 'red',
    'CRITICAL': 'bold_red',
}


def getLogger() -> logging.Logger:
    return logging.getLogger(LOGGER_NAME)


def summary(message: str, *args) -> None:
    """Log a run summary line"""
    getLogger().log(SUMMARY, message, *args)


def configureLogging(log_file: str = None, log_level: str = 'INFO') -> logging.Logger:
    """Console output for every event, optionally appended to a log file"""
    logger = getLogger()
    logger.setLevel(logging.DEBUG)
    for handler in list(logger.handlers):
        logger.removeHandler(handler)
        handler.close()
    logger.propagate = False

    console = colorlog.StreamHandler(sys.stdout)
    console.setLevel(logging.getLevelName(log_level.upper()))
    console.setFormatter(colorlog.ColoredFormatter('%(log_color)s%(levelname)-8s%(reset)s %(message)s',
                                                   log_colors=LOG_COLORS))
    logger.addHandler(console)

    if log_file:
        filehandler = logging.FileHandler(log_file, mode='a')
        filehandler.setLevel(logging.DEBUG)
        filehandler.setFormatter(logging.Formatter('%(asctime)s %(levelname)-8s %(message)s'))
        logger.addHandler(filehandler)
    return logger
