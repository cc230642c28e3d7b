#!/usr/bin/env python3

# vCD Import/Export for VMware Cloud Director - object export

################################################################################
### Copyright 2020-2023 VMware, Inc.
### SPDX-License-Identifier: BSD-2-Clause
################################################################################

"""

Exports the description of vCloud Director objects to JSON files that
vcd_migrate.py can import.

You can install the dependent python packages locally with:
pip3 install -r requirements.txt

"""
import sys
MIN_PYTHON = (3,10)
assert sys.version_info >= MIN_PYTHON, f"Python {'.'.join([str(n) for n in MIN_PYTHON])} or newer is required."

import argparse
from pathlib import Path

from VCDImportExport import VCDImportExport
from vcd_errors import VCDError
from vcd_log import configureLogging, summary
from vcd_objects import MIGRATABLE_TYPES, ObjectType
from vcd_prompt import ConsolePrompter, promptCredentials
from vcd_reader import ObjectReader

CONFIG_FILE_PATH = "./config_ini/config.ini"
VCD_CONFIG_FILE_PATH = "./config_ini/vcd.ini"


# --------------------------------------------
# ---------------- Main ----------------------
# --------------------------------------------
def main(args=None):
    ap = argparse.ArgumentParser(formatter_class=argparse.RawDescriptionHelpFormatter,
                                 epilog="Welcome to vcd_export!\n"
                                 "Examples:\n\n"
                                 "Export one organization:\n"
                                 "python vcd_export.py -ot Organization -n Acme\n\n"
                                 "Export every edge gateway whose name starts with Acme:\n"
                                 "python vcd_export.py -ot EdgeGateway -q 'Acme*'\n\n")
    ap.add_argument("-s", "--source-url", required=False, help="vCD URL, overrides vcd.ini")
    ap.add_argument("-ot", "--object-type", required=True, choices=[t.value for t in MIGRATABLE_TYPES],
                    help="Type of the object to export")
    name_group = ap.add_mutually_exclusive_group(required=True)
    name_group.add_argument("-n", "--name", required=False, help="Name of the object")
    name_group.add_argument("-q", "--search", required=False, help="Export every object matching a * wildcard pattern")
    ap.add_argument("-org", "--org-name", required=False, help="Organization holding the object")
    ap.add_argument("-vdc", "--vdc-name", required=False, help="Org VDC holding the edge gateway")
    ap.add_argument("-ef", "--export-folder", required=False, help="Export folder location")
    ap.add_argument("-su", "--source-user", required=False, help="User as user@org")

    args = ap.parse_args(args)

    ioObj = VCDImportExport(CONFIG_FILE_PATH, VCD_CONFIG_FILE_PATH)

    if args.source_url:
        ioObj.source_url = args.source_url
        print('Loaded source URL from command line')

    if args.export_folder:
        ioObj.export_folder = args.export_folder
        ioObj.export_path = Path(ioObj.export_folder)
        print('Loaded export folder from command line')

    logger = configureLogging(ioObj.log_file, ioObj.log_level)

    if not ioObj.source_url:
        ap.error('no source URL in vcd.ini or on the command line')

    objectType = ObjectType.fromName(args.object_type)
    prompter = ConsolePrompter()

    exit_code = 0
    try:
        user, org, password = promptCredentials(prompter, 'Source', ioObj.source_url, args.source_user)
        source = ioObj.connect(ioObj.source_url, user, org, password, ioObj.source_ssl_verify, 'source')
        password = None
        reader = ObjectReader(source)
        if args.search:
            files = ioObj.exportObjects(reader, objectType, args.search, args.org_name, args.vdc_name)
        else:
            files = [ioObj.exportObject(reader, objectType, args.name, args.org_name, args.vdc_name)]
        summary('%s file(s) written to %s', len(files), ioObj.export_path)
    except VCDError as e:
        logger.error(e.message)
        exit_code = 1
    finally:
        ioObj.closeSessions()

    if ioObj.results:
        print("Export results:\n")
        print(ioObj.resultsTable(ioObj.results))
    sys.exit(exit_code)


if __name__ == '__main__':
    main(sys.argv[1:])
