#!/usr/bin/env python3

# vCD Import/Export for VMware Cloud Director - object migration

################################################################################
### Copyright 2020-2023 VMware, Inc.
### SPDX-License-Identifier: BSD-2-Clause
################################################################################

"""

Migrates vCloud Director objects from a source vCD to a target vCD, or from a
file written by vcd_export.py.

vCD API documentation is available at: https://developer.vmware.com/apis/vmware-cloud-director

You can install the dependent python packages locally with:
pip3 install -r requirements.txt

"""
import sys
MIN_PYTHON = (3,10)
assert sys.version_info >= MIN_PYTHON, f"Python {'.'.join([str(n) for n in MIN_PYTHON])} or newer is required."

import argparse

from VCDImportExport import VCDImportExport
from vcd_errors import VCDError
from vcd_log import configureLogging
from vcd_objects import MIGRATABLE_TYPES, ObjectType
from vcd_prompt import ConsolePrompter, promptCredentials

CONFIG_FILE_PATH = "./config_ini/config.ini"
VCD_CONFIG_FILE_PATH = "./config_ini/vcd.ini"


# --------------------------------------------
# ---------------- Main ----------------------
# --------------------------------------------
def main(args=None):
    ap = argparse.ArgumentParser(formatter_class=argparse.RawDescriptionHelpFormatter,
                                 epilog="Welcome to vcd_migrate!\n"
                                 "Examples:\n\n"
                                 "Migrate an organization with its users, Org VDCs, edge gateways and networks:\n"
                                 "python vcd_migrate.py -ot Organization -n Acme\n\n"
                                 "Migrate a routed network into an existing Org VDC:\n"
                                 "python vcd_migrate.py -ot OrgVdcNetwork -n Acme-Net1 -org Acme -vdc Acme-VDC\n\n"
                                 "Re-apply the services of an edge gateway:\n"
                                 "python vcd_migrate.py -ot EdgeGateway -n Acme-EGW -org Acme -vdc Acme-VDC -so\n\n"
                                 "Create a role from an exported file:\n"
                                 "python vcd_migrate.py -i json/Role-Auditor.json\n\n")
    ap.add_argument("-s", "--source-url", required=False, help="Source vCD URL, overrides vcd.ini")
    ap.add_argument("-t", "--target-url", required=False, help="Target vCD URL, overrides vcd.ini")
    ap.add_argument("-ot", "--object-type", required=False, choices=[t.value for t in MIGRATABLE_TYPES],
                    help="Type of the object to migrate")
    ap.add_argument("-n", "--name", required=False, help="Name of the object on the source")
    ap.add_argument("-org", "--org-name", required=False, help="Organization holding the object")
    ap.add_argument("-vdc", "--vdc-name", required=False, help="Org VDC holding the network or edge gateway")
    ap.add_argument("-i", "--import-file-path", required=False, help="A previously exported object file, used instead of the source vCD")
    ap.add_argument("-r", "--rename", required=False, action="store_true", help="Prompt for a new name for every renamable object")
    ap.add_argument("-nn", "--new-name", required=False, help="Target name of the object")
    ap.add_argument("-p", "--default-password", required=False, help="Password given to every migrated local user")
    ap.add_argument("-so", "--services-only", required=False, action="store_true", help="Only re-apply edge gateway services")
    ap.add_argument("-su", "--source-user", required=False, help="Source user as user@org")
    ap.add_argument("-tu", "--target-user", required=False, help="Target user as user@org")
    ap.add_argument("-y", "--yes", required=False, action="store_true", help="Do not ask before creating edge gateways and networks")

    args = ap.parse_args(args)

    ioObj = VCDImportExport(CONFIG_FILE_PATH, VCD_CONFIG_FILE_PATH)

    # Check the optional command-line arguments to override the values in vcd.ini
    if args.source_url:
        ioObj.source_url = args.source_url
        print('Loaded source URL from command line')

    if args.target_url:
        ioObj.target_url = args.target_url
        print('Loaded target URL from command line')

    if args.yes:
        ioObj.confirm_before_network_creation = False
        print('Loaded network creation confirmation from command line')

    logger = configureLogging(ioObj.log_file, ioObj.log_level)

    if not args.import_file_path and not (args.object_type and args.name):
        ap.error('an object type and name, or an import file, are required')
    if not ioObj.target_url:
        ap.error('no target URL in vcd.ini or on the command line')
    if not args.import_file_path and not ioObj.source_url:
        ap.error('no source URL in vcd.ini or on the command line')
    if args.services_only and args.object_type not in (None, ObjectType.EDGE_GATEWAY.value):
        ap.error('--services-only only applies to edge gateways')

    objectType = ObjectType.fromName(args.object_type) if args.object_type else None
    prompter = ConsolePrompter(assume_yes=args.yes)

    context = None
    exit_code = 0
    try:
        source = None
        if not args.import_file_path:
            user, org, password = promptCredentials(prompter, 'Source', ioObj.source_url, args.source_user)
            source = ioObj.connect(ioObj.source_url, user, org, password, ioObj.source_ssl_verify, 'source')
        user, org, password = promptCredentials(prompter, 'Target', ioObj.target_url, args.target_user)
        target = ioObj.connect(ioObj.target_url, user, org, password, ioObj.target_ssl_verify, 'target')
        password = None

        context = ioObj.newContext(source, target, prompter, args.rename, args.default_password)
        if objectType == ObjectType.ORGANIZATION and not args.import_file_path:
            ioObj.migrateOrganization(context, args.name, args.new_name)
        else:
            ioObj.migrateObject(context, objectType, args.name, args.org_name, args.vdc_name,
                                args.import_file_path, args.new_name, args.services_only)
    except VCDError as e:
        logger.error(e.message)
        exit_code = 1
    finally:
        ioObj.closeSessions()

    if context is not None and context.results:
        print("Migration results:\n")
        print(ioObj.resultsTable(context.results))
    sys.exit(exit_code)


if __name__ == '__main__':
    main(sys.argv[1:])
