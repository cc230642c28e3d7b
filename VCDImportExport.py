# vCD Import/Export for VMware Cloud Director

################################################################################
### Copyright 2020-2023 VMware, Inc.
### SPDX-License-Identifier: BSD-2-Clause
################################################################################

import configparser                     # parsing config file
import os
from pathlib import Path

import urllib3
from prettytable import PrettyTable

from vcd import VCDConnection
from vcd_auth import closeSession, openSession
from vcd_builders import (EdgeGatewayBuilder, OrganizationBuilder, OrgVdcBuilder, OrgVdcNetworkBuilder, UserBuilder,
                          builderFor)
from vcd_context import EdgeGatewayState, MigrationContext, MigrationSettings
from vcd_errors import NotFound, ReferenceNotFound, ValidationError
from vcd_log import getLogger, summary
from vcd_objects import ObjectType, VCDObject, exportFilename, getChild, readObjectFile, writeObjectFile
from vcd_reader import ObjectReader

logger = getLogger()

# Objects that live inside an organization, and those that also live inside an Org VDC
ORG_SCOPED_TYPES = [ObjectType.USER, ObjectType.ORG_VDC, ObjectType.ORG_VDC_NETWORK, ObjectType.EDGE_GATEWAY]
VDC_SCOPED_TYPES = [ObjectType.ORG_VDC_NETWORK, ObjectType.EDGE_GATEWAY]
# Roles are tenant roles when an organization is given, global roles otherwise
ORG_OPTIONAL_TYPES = [ObjectType.ROLE]


class VCDImportExport:
    """A class to handle exporting and migrating vCloud Director objects"""

    def __init__(self, configPath="./config_ini/config.ini", vcdConfigPath="./config_ini/vcd.ini"):
        self.configPath = configPath
        self.vcdConfigPath = vcdConfigPath
        self.source_url = ""
        self.target_url = ""
        self.api_version = "31.0"
        self.source_ssl_verify = True
        self.target_ssl_verify = True
        self.schema_versions = {}
        self.export_folder = ""
        self.import_folder = ""
        self.export_path = None
        self.import_path = None
        self.confirm_before_network_creation = True
        self.vdc_creation_delay = 30
        self.poll_interval = 5
        self.poll_max_attempts = 120
        self.services_remove_disabled_load_balancer = False
        self.log_file = None
        self.log_level = "INFO"
        self.sessions = []
        self.results = []
        self.ConfigLoader()

    def ConfigLoader(self):
        """Load all configuration variables from config.ini and vcd.ini"""
        config = configparser.ConfigParser()
        vcdConfig = configparser.ConfigParser()
        config.read(self.configPath)
        vcdConfig.read(self.vcdConfigPath)

        self.source_url               = self.loadConfigValue(vcdConfig, "vcdConfig", "source_url", "")
        self.target_url               = self.loadConfigValue(vcdConfig, "vcdConfig", "target_url", "")
        self.api_version              = self.loadConfigValue(vcdConfig, "vcdConfig", "api_version", self.api_version)
        self.source_ssl_verify        = self.loadConfigFlag(vcdConfig, "vcdConfig", "source_ssl_verify", True)
        self.target_ssl_verify        = self.loadConfigFlag(vcdConfig, "vcdConfig", "target_ssl_verify", True)
        if vcdConfig.has_section("apiVersions"):
            # Per-type schema pins, e.g. EdgeGateway = 27.0
            self.schema_versions = {ObjectType.fromName(key).value: value
                                    for key, value in vcdConfig.items("apiVersions") if value}

        self.export_folder            = self.loadConfigValue(config, "exportConfig", "export_folder", "json")
        self.import_folder            = self.loadConfigValue(config, "importConfig", "import_folder", "json")
        self.export_path              = Path(self.export_folder)
        self.import_path              = Path(self.import_folder)
        self.confirm_before_network_creation = self.loadConfigFlag(config, "importConfig", "confirm_before_network_creation", True)
        self.vdc_creation_delay       = self.loadConfigInt(config, "importConfig", "vdc_creation_delay", self.vdc_creation_delay)
        self.poll_interval            = self.loadConfigInt(config, "importConfig", "poll_interval", self.poll_interval)
        self.poll_max_attempts        = self.loadConfigInt(config, "importConfig", "poll_max_attempts", self.poll_max_attempts)
        self.services_remove_disabled_load_balancer = self.loadConfigFlag(config, "importConfig", "services_remove_disabled_load_balancer", False)

        self.log_file                 = self.loadConfigValue(config, "logConfig", "log_file", None) or None
        self.log_level                = self.loadConfigValue(config, "logConfig", "log_level", self.log_level)

    def loadConfigFlag(self, config, section, key, default=None):
        """Load a True/False flag from the config file"""
        try:
            configoption = config.get(section, key)
        except (configparser.NoSectionError, configparser.NoOptionError):
            return default
        return configoption.strip().lower() == "true"

    def loadConfigValue(self, config, section, key, default=None):
        """Load a string from the config file, with a default if it is missing"""
        try:
            return config.get(section, key).strip()
        except (configparser.NoSectionError, configparser.NoOptionError):
            return default

    def loadConfigInt(self, config, section, key, default=0):
        try:
            return config.getint(section, key)
        except (configparser.NoSectionError, configparser.NoOptionError):
            return default
        except ValueError:
            logger.warning('Invalid number for %s in [%s], using %s', key, section, default)
            return default

    # --------------------------------------------
    # ---------------- Sessions ------------------
    # --------------------------------------------

    def connect(self, url: str, username: str, org: str, password: str, ssl_verify: bool, label: str) -> VCDConnection:
        """Open a session and wrap it in a connection"""
        if not ssl_verify:
            urllib3.disable_warnings(urllib3.exceptions.InsecureRequestWarning)
        session = openSession(url, username, org, password, self.api_version, ssl_verify)
        self.sessions.append(session)
        return VCDConnection(session, self.schema_versions, self.poll_interval, self.poll_max_attempts, label)

    def closeSessions(self):
        for session in self.sessions:
            closeSession(session)
        self.sessions = []

    # --------------------------------------------
    # ---------------- Export --------------------
    # --------------------------------------------

    def sourceScope(self, reader: ObjectReader, objectType: ObjectType, org_name: str = None, vdc_name: str = None):
        """The organization (or Org VDC) a lookup is limited to"""
        if objectType not in ORG_SCOPED_TYPES + ORG_OPTIONAL_TYPES or not org_name:
            return None
        org = reader.find(ObjectType.ORGANIZATION, org_name)
        if objectType == ObjectType.EDGE_GATEWAY:
            return reader.find(ObjectType.ORG_VDC, vdc_name, org) if vdc_name else None
        return org

    def writeExport(self, obj: VCDObject) -> Path:
        self.export_path.mkdir(parents=True, exist_ok=True)
        fname = self.export_path / exportFilename(obj)
        writeObjectFile(obj, fname)
        logger.info('Exported %s %s to %s', obj.objectType.value, obj.name, fname)
        self.results.append([obj.objectType.value, obj.name, 'Exported', str(fname)])
        return fname

    def exportObject(self, reader: ObjectReader, objectType: ObjectType, name: str, org_name: str = None,
                     vdc_name: str = None) -> Path:
        """Export one named object to <export_folder>/<Type>-<name>.json"""
        scope = self.sourceScope(reader, objectType, org_name, vdc_name)
        return self.writeExport(reader.find(objectType, name, scope))

    def exportObjects(self, reader: ObjectReader, objectType: ObjectType, pattern: str, org_name: str = None,
                      vdc_name: str = None) -> list:
        """Export every object whose name matches a * wildcard pattern"""
        scope = self.sourceScope(reader, objectType, org_name, vdc_name)
        records = reader.search(objectType, pattern, scope)
        if not records:
            logger.warning('No %s matches %s', objectType.value, pattern)
        return [self.writeExport(reader.findByLocator(record['@href'], objectType)) for record in records]

    def loadImportFile(self, path) -> VCDObject:
        """Read an exported object back. Relative paths are also looked up in the import folder."""
        fname = Path(path)
        if not fname.exists() and not fname.is_absolute() and self.import_path is not None:
            fname = self.import_path / fname
        if not fname.exists():
            raise ValidationError(f'Import file {path} does not exist')
        try:
            obj = readObjectFile(fname)
        except ValueError as e:
            raise ValidationError(f'Import file {fname} could not be loaded: {e}')
        logger.info('Loaded %s %s from %s', obj.objectType.value, obj.name, os.fspath(fname))
        return obj

    # --------------------------------------------
    # ---------------- Migration -----------------
    # --------------------------------------------

    def newContext(self, source: VCDConnection, target: VCDConnection, prompter, rename: bool = False,
                   default_password: str = None) -> MigrationContext:
        settings = MigrationSettings(self.confirm_before_network_creation, self.vdc_creation_delay,
                                     self.services_remove_disabled_load_balancer, rename, default_password)
        return MigrationContext(source, target, prompter, settings)

    def askNewName(self, context: MigrationContext, objectType: ObjectType, name: str, new_name: str = None) -> str:
        """In rename mode, ask for the target name of an object and remember it"""
        if new_name is None and context.settings.rename:
            new_name = context.prompter.ask(f'New name for {objectType.value} {name}', name)
        if new_name:
            context.rename(objectType, name, new_name)
        return context.targetName(objectType, name)

    def parentName(self, context: MigrationContext, obj: VCDObject) -> str:
        """Name of the Org VDC behind the 'up' link of a network or edge gateway"""
        up = obj.link('up')
        if up is None or context.source_reader is None:
            return None
        return context.source_reader.findByLocator(up, ObjectType.ORG_VDC).name

    def sourceObject(self, context: MigrationContext, objectType: ObjectType, name: str, org_name: str = None,
                     vdc_name: str = None, import_file: str = None) -> VCDObject:
        if import_file:
            obj = self.loadImportFile(import_file)
            if objectType is not None and obj.objectType != objectType:
                raise ValidationError(f'{import_file} holds a {obj.objectType.value}, not a {objectType.value}')
            return obj
        if context.source_reader is None:
            raise ValidationError('A source vCD or an import file is required')
        scope = self.sourceScope(context.source_reader, objectType, org_name, vdc_name)
        return context.source_reader.find(objectType, name, scope)

    def targetScopes(self, context: MigrationContext, objectType: ObjectType, org_name: str = None,
                     vdc_name: str = None) -> tuple:
        """(target organization, target scope object) for a single object"""
        if objectType not in ORG_SCOPED_TYPES and not (objectType in ORG_OPTIONAL_TYPES and org_name):
            return None, None
        if not org_name:
            raise ValidationError(f'An organization name is required to migrate a {objectType.value}')
        org_target_name = context.targetName(ObjectType.ORGANIZATION, org_name)
        try:
            org = context.target_reader.find(ObjectType.ORGANIZATION, org_target_name)
        except NotFound:
            raise ReferenceNotFound(org_target_name, ObjectType.ORGANIZATION.value)
        if objectType not in VDC_SCOPED_TYPES:
            return org, org
        if not vdc_name:
            raise ValidationError(f'An Org VDC name is required to migrate a {objectType.value}')
        vdc_target_name = context.targetName(ObjectType.ORG_VDC, vdc_name)
        try:
            vdc = context.target_reader.find(ObjectType.ORG_VDC, vdc_target_name, org)
        except NotFound:
            raise ReferenceNotFound(vdc_target_name, ObjectType.ORG_VDC.value)
        return org, vdc

    def migrateObject(self, context: MigrationContext, objectType: ObjectType, name: str = None, org_name: str = None,
                      vdc_name: str = None, import_file: str = None, new_name: str = None,
                      services_only: bool = False):
        """Migrate one object from the source (or an import file) to the target"""
        source = self.sourceObject(context, objectType, name, org_name, vdc_name, import_file)
        objectType = source.objectType
        if objectType in VDC_SCOPED_TYPES and not vdc_name:
            vdc_name = self.parentName(context, source)
        org, scope = self.targetScopes(context, objectType, org_name, vdc_name)
        target_name = self.askNewName(context, objectType, source.name, new_name)

        if objectType == ObjectType.EDGE_GATEWAY:
            return self.migrateEdgeGateway(context, source, org, scope, target_name, services_only)
        target, _ = builderFor(objectType, context).migrate(source, scope, target_name)
        return target

    def migrateEdgeGateway(self, context: MigrationContext, source: VCDObject, org: VCDObject, vdc: VCDObject,
                           target_name: str, services_only: bool = False):
        builder = EdgeGatewayBuilder(context)
        if services_only:
            try:
                gateway = context.target_reader.find(ObjectType.EDGE_GATEWAY, target_name, vdc)
            except NotFound:
                raise ReferenceNotFound(target_name, ObjectType.EDGE_GATEWAY.value)
            builder.reapplyServices(source, gateway, org)
            return gateway

        record = self.ensureEdgeGateway(context, source, vdc)
        for network in sorted(record.internal_networks):
            if context.target_reader.exists(ObjectType.ORG_VDC_NETWORK, network, org):
                record.networkReady(network)
        if not record.created:
            return record.target
        if record.state == EdgeGatewayState.NETWORKS_PROVISIONED:
            record.target = builder.edit(source, record.target, org)
            record.markEdited()
        else:
            logger.warning('Edge gateway %s was created without its internal interfaces. Networks %s do not exist yet; '
                           'migrate them, then re-apply the services with --services-only',
                           record.target_name, ', '.join(record.pending_networks))
            context.record(ObjectType.EDGE_GATEWAY, record.target_name, 'Incomplete',
                           'Waiting for ' + ', '.join(record.pending_networks))
        return record.target

    def ensureEdgeGateway(self, context: MigrationContext, source: VCDObject, vdc: VCDObject):
        """Create-phase an edge gateway once per run"""
        record = context.edgeGatewayRecord(source.name, source)
        if record.state != EdgeGatewayState.ABSENT:
            return record
        builder = EdgeGatewayBuilder(context)
        gateway, created = builder.migrate(source, vdc, record.target_name)
        record.target_name = gateway.name
        record.markCreated(gateway, created, builder.internalNetworks(source))
        return record

    def migrateOrganization(self, context: MigrationContext, name: str, new_name: str = None):
        """Migrate an organization with its users, Org VDCs, edge gateways and networks"""
        reader = context.source_reader
        if reader is None:
            raise ValidationError('A full organization migration needs a source vCD')
        source_org = reader.find(ObjectType.ORGANIZATION, name)
        org_name = self.askNewName(context, ObjectType.ORGANIZATION, name, new_name)

        logger.info('Discovering organization %s', name)
        users = [reader.findByLocator(ref['@href'], ObjectType.USER)
                 for ref in source_org.references('Users', 'UserReference')]
        vdcs = [reader.findByLocator(ref['@href'], ObjectType.ORG_VDC)
                for ref in source_org.references('Vdcs', 'Vdc')]
        networks = [reader.findByLocator(ref['@href'], ObjectType.ORG_VDC_NETWORK)
                    for ref in source_org.references('Networks', 'Network')]
        gateways = {}
        gateway_vdcs = {}
        for vdc in vdcs:
            for record in reader.edgeGatewayRecords(vdc):
                gateways[record['@name']] = reader.findByLocator(record['@href'], ObjectType.EDGE_GATEWAY)
                gateway_vdcs[record['@name']] = vdc.name
        logger.info('Found %s users, %s Org VDCs, %s networks and %s edge gateways',
                    len(users), len(vdcs), len(networks), len(gateways))

        for vdc in vdcs:
            self.askNewName(context, ObjectType.ORG_VDC, vdc.name)
        for gateway_name in gateways:
            self.askNewName(context, ObjectType.EDGE_GATEWAY, gateway_name)

        target_org, _ = OrganizationBuilder(context).migrate(source_org, None, org_name)

        user_builder = UserBuilder(context)
        for user in users:
            user_builder.migrate(user, target_org)

        target_vdcs = {}
        vdc_builder = OrgVdcBuilder(context)
        for vdc in vdcs:
            target_vdcs[vdc.name], _ = vdc_builder.migrate(vdc, target_org)

        if (networks or gateways) and context.settings.confirm_before_network_creation:
            question = (f'Ready to create {len(gateways)} edge gateways and {len(networks)} networks '
                        f'in organization {org_name}. Continue?')
            if not context.prompter.confirm(question):
                logger.warning('Migration of organization %s stopped before network creation', name)
                context.record(ObjectType.ORGANIZATION, org_name, 'Stopped', 'Operator declined network creation')
                return target_org

        network_builder = OrgVdcNetworkBuilder(context)
        for network in networks:
            source_vdc = reader.owningVdc(network, vdcs)
            if source_vdc is None:
                raise ValidationError(f'Network {network.name} does not belong to any Org VDC of {name}')
            gateway_ref = getChild(network.body, 'EdgeGateway')
            if isinstance(gateway_ref, dict):
                gateway_name = gateway_ref.get('@name')
                if gateway_name not in gateways:
                    raise ReferenceNotFound(gateway_name, ObjectType.EDGE_GATEWAY.value)
                self.ensureEdgeGateway(context, gateways[gateway_name], target_vdcs[gateway_vdcs[gateway_name]])
            network_builder.migrate(network, target_vdcs[source_vdc.name])
            for record in context.edgeGatewayMap.values():
                if network.name in record.internal_networks:
                    record.networkReady(network.name)

        # Gateways without routed networks
        for gateway_name, gateway in gateways.items():
            self.ensureEdgeGateway(context, gateway, target_vdcs[gateway_vdcs[gateway_name]])

        # Reload the organization so that its network list includes the new networks
        target_org = context.target_reader.findByLocator(target_org.href, ObjectType.ORGANIZATION)
        gateway_builder = EdgeGatewayBuilder(context)
        for record in context.edgeGatewayMap.values():
            if not record.created:
                continue
            if record.state != EdgeGatewayState.NETWORKS_PROVISIONED:
                logger.warning('Edge gateway %s not edited, networks %s are missing',
                               record.target_name, ', '.join(record.pending_networks))
                context.record(ObjectType.EDGE_GATEWAY, record.target_name, 'Incomplete',
                               'Waiting for ' + ', '.join(record.pending_networks))
                continue
            logger.info('Restoring the full configuration of edge gateway %s', record.target_name)
            record.target = gateway_builder.edit(record.source, record.target, target_org)
            record.markEdited()

        created = len([result for result in context.results if result[2] == 'Created'])
        skipped = len([result for result in context.results if result[2] == 'Skipped'])
        summary('Organization %s migrated: %s objects created, %s skipped', org_name, created, skipped)
        return target_org

    def resultsTable(self, results: list) -> PrettyTable:
        table = PrettyTable(['Object Type', 'Name', 'Result', 'Result Note'])
        for result in results:
            table.add_row(result)
        return table
