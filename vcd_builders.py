# Object builders for vCD Import/Export
################################################################################
### Copyright 2020-2023 VMware, Inc.
### SPDX-License-Identifier: BSD-2-Clause
################################################################################
import time

from vcd_context import MigrationContext
from vcd_errors import NotFound, ValidationError
from vcd_log import getLogger
from vcd_objects import (EDGE_GATEWAY_SERVICES_CONTENT_TYPE, TYPE_INFO, UPDATE_STORAGE_PROFILES_CONTENT_TYPE,
                         VCLOUD_NAMESPACE, VDC_STORAGE_PROFILE_CONTENT_TYPE, ObjectType, VCDObject, getChild,
                         insertAfter, isTrue, listify, newDocument, removeChild, sanitizeDescription, setChild,
                         stripLinks, stripReadOnly)
from vcd_resolver import (EDGE_GATEWAY_SERVICE_REFERENCES, gatewayConfiguration, gatewayInterfaces, gatewayServices,
                          networkTypesOf, serviceReferences)

logger = getLogger()

WILDCARD_STORAGE_PROFILE = '*'

# Service blocks the platform rejects when disabled but still configured
REMOVABLE_SERVICES = ['GatewayDhcpService', 'GatewayIpsecVpnService', 'LoadBalancerService', 'StaticRoutingService']


def stripIdentity(node) -> None:
    """Recursively remove href, id and type attributes from nested settings"""
    if isinstance(node, dict):
        for key in ('@href', '@id', '@type'):
            node.pop(key, None)
        for value in node.values():
            stripIdentity(value)
    elif isinstance(node, list):
        for item in node:
            stripIdentity(item)


def removeDisabledServices(services: dict, blocks: list) -> list:
    """Drop every listed service block not enabled in the source. Returns the removed names."""
    removed = []
    for block_name in blocks:
        block = getChild(services, block_name)
        if isinstance(block, dict) and not isTrue(getChild(block, 'IsEnabled')):
            removeChild(services, block_name)
            removed.append(block_name)
    return removed


def removeInternalServiceEntries(services: dict, internal_networks: set) -> int:
    """Drop service entries that reference internal networks. Returns the number removed."""
    removed = 0
    for block_name, entry_name, _, _ in EDGE_GATEWAY_SERVICE_REFERENCES:
        block = getChild(services, block_name)
        if not isinstance(block, dict):
            continue
        entries = listify(getChild(block, entry_name))
        keep = []
        for entry in entries:
            refs = [ref for _, _, ref in serviceReferences({block_name: {entry_name: entry}})]
            if any(ref.get('@name') in internal_networks for ref in refs):
                removed += 1
            else:
                keep.append(entry)
        if not entries:
            continue
        if keep:
            setChild(block, entry_name, keep)
        else:
            removeChild(block, entry_name)
    return removed


def selectDefaultRoute(interfaces: list) -> tuple:
    """The first (interface, subnet) the source marks as default route, or (None, None)"""
    for interface in interfaces:
        subnets = listify(getChild(interface, 'SubnetParticipation'))
        for subnet in subnets:
            if isTrue(getChild(subnet, 'UseForDefaultRoute')):
                return interface, subnet
        if isTrue(getChild(interface, 'UseForDefaultRoute')):
            return interface, subnets[0] if subnets else None
    return None, None


def setDefaultRoute(interfaces: list, interface: dict = None, subnet: dict = None) -> None:
    """Mark at most one interface and one of its subnets as default route"""
    for each in interfaces:
        setChild(each, 'UseForDefaultRoute', 'false')
        for each_subnet in listify(getChild(each, 'SubnetParticipation')):
            setChild(each_subnet, 'UseForDefaultRoute', 'false')
    if interface is not None:
        setChild(interface, 'UseForDefaultRoute', 'true')
        if subnet is not None:
            setChild(subnet, 'UseForDefaultRoute', 'true')


def sanitizeBodyDescription(body: dict) -> None:
    description = getChild(body, 'Description')
    if description is not None:
        setChild(body, 'Description', sanitizeDescription(description))


class ObjectBuilder():
    """Creates one kind of object on the target, skipping it if the name is already taken"""
    objectType = None

    def __init__(self, context: MigrationContext) -> None:
        self.context = context

    @property
    def target(self):
        return self.context.target

    @property
    def reader(self):
        return self.context.target_reader

    @property
    def resolver(self):
        return self.context.resolver

    @property
    def content_type(self) -> str:
        return TYPE_INFO[self.objectType].contentType

    @property
    def version(self) -> str:
        return self.target.versionFor(self.objectType)

    def targetName(self, source: VCDObject, newName: str = None) -> str:
        return newName or self.context.targetName(self.objectType, source.name)

    def findExisting(self, name: str, scope=None) -> VCDObject:
        try:
            return self.reader.find(self.objectType, name, scope)
        except NotFound:
            return None

    def migrate(self, source: VCDObject, scope=None, newName: str = None) -> tuple:
        """Build the object unless the name already exists. Returns (target object, created)."""
        name = self.targetName(source, newName)
        existing = self.findExisting(name, scope)
        if existing is not None:
            logger.warning('%s %s already exists on the target, skipping', self.objectType.value, name)
            self.context.record(self.objectType, name, 'Skipped', 'Already exists')
            return existing, False
        logger.info('Creating %s %s', self.objectType.value, name)
        target = self.build(source, scope, name)
        logger.info('%s %s created', self.objectType.value, name)
        self.context.record(self.objectType, name, 'Created')
        return target, True

    def build(self, source: VCDObject, scope=None, newName: str = None) -> VCDObject:
        raise NotImplementedError

    def submit(self, url: str, payload: VCDObject, description: str) -> VCDObject:
        """POST the payload, wait for its tasks and return the fresh description"""
        response = self.target.createObject(url, payload, self.content_type, self.version)
        self.target.waitForTasks(response, description)
        return self.target.getObject(response.href)


class OrganizationBuilder(ObjectBuilder):
    objectType = ObjectType.ORGANIZATION

    def payload(self, source: VCDObject, newName: str = None) -> VCDObject:
        payload = source.copy()
        stripReadOnly(payload.body, extra=('Users', 'Groups', 'Catalogs', 'Vdcs', 'Networks', 'RightReferences',
                                           'RoleReferences', 'VdcTemplates'))
        stripIdentity(getChild(payload.body, 'Settings'))
        payload.body.setdefault('@xmlns', VCLOUD_NAMESPACE)
        sanitizeBodyDescription(payload.body)
        if newName:
            payload.name = newName
        return payload

    def build(self, source: VCDObject, scope=None, newName: str = None) -> VCDObject:
        payload = self.payload(source, newName)
        return self.submit(f'{self.target.api_url}/admin/orgs', payload, f'Organization {payload.name} creation')


class RoleBuilder(ObjectBuilder):
    objectType = ObjectType.ROLE

    def payload(self, source: VCDObject, newName: str = None) -> VCDObject:
        payload = self.resolver.rewrite(source)
        stripReadOnly(payload.body)
        payload.body.setdefault('@xmlns', VCLOUD_NAMESPACE)
        if newName:
            payload.name = newName
        return payload

    def build(self, source: VCDObject, scope=None, newName: str = None) -> VCDObject:
        payload = self.payload(source, newName)
        if scope is not None:
            url = f'{scope.href}/roles'
        else:
            url = f'{self.target.api_url}/admin/roles'
        return self.submit(url, payload, f'Role {payload.name} creation')


class UserBuilder(ObjectBuilder):
    objectType = ObjectType.USER

    def ensureRole(self, source: VCDObject, scope: VCDObject) -> None:
        """Create the user's role in the target organization when that organization lacks it"""
        role = getChild(source.body, 'Role')
        if not isinstance(role, dict) or self.context.source_reader is None:
            return
        if role.get('@href'):
            source_role = self.context.source_reader.findByLocator(role['@href'], ObjectType.ROLE)
        else:
            source_role = self.context.source_reader.find(ObjectType.ROLE, role.get('@name'))
        RoleBuilder(self.context).migrate(source_role, scope)

    def isExternal(self, source: VCDObject) -> bool:
        provider = getChild(source.body, 'ProviderType')
        return isTrue(getChild(source.body, 'IsExternal')) or provider in ('LDAP', 'SAML', 'OAUTH')

    def password(self, name: str) -> str:
        if self.context.settings.default_password:
            return self.context.settings.default_password
        return self.context.prompter.password(f'Password for user {name}')

    def payload(self, source: VCDObject, newName: str = None, scope: VCDObject = None) -> VCDObject:
        payload = self.resolver.rewrite(source, {ObjectType.ROLE: scope})
        stripReadOnly(payload.body, extra=('GroupReferences', 'Password'))
        payload.body.setdefault('@xmlns', VCLOUD_NAMESPACE)
        if newName:
            payload.name = newName
        return payload

    def build(self, source: VCDObject, scope=None, newName: str = None) -> VCDObject:
        if scope is None:
            raise ValidationError(f'User {source.name} needs a target organization')
        self.ensureRole(source, scope)
        payload = self.payload(source, newName, scope)
        if not self.isExternal(source):
            insertAfter(payload.body, 'Role', 'Password', self.password(payload.name))
        try:
            return self.submit(f'{scope.href}/users', payload, f'User {payload.name} creation')
        finally:
            removeChild(payload.body, 'Password')


class OrgVdcBuilder(ObjectBuilder):
    objectType = ObjectType.ORG_VDC

    @staticmethod
    def capacity(body: dict, resource: str) -> dict:
        compute = getChild(body, 'ComputeCapacity') or {}
        return getChild(compute, resource) or {}

    @staticmethod
    def number(value, default=0):
        if value is None:
            return default
        return int(float(value))

    @staticmethod
    def optionalBool(value):
        if value is None:
            return None
        return isTrue(value)

    def createParams(self, payload: VCDObject, name: str, wildcard: dict) -> dict:
        """Translate an AdminVdc description into CreateVdcParams values.
        wildcard is the provider vdc's own '*' storage profile record."""
        body = payload.body
        cpu = self.capacity(body, 'Cpu')
        memory = self.capacity(body, 'Memory')
        provider = getChild(body, 'ProviderVdcReference')
        pool = getChild(body, 'NetworkPoolReference')
        guaranteed_memory = getChild(body, 'ResourceGuaranteedMemory')
        guaranteed_cpu = getChild(body, 'ResourceGuaranteedCpu')
        vcpu = getChild(body, 'VCpuInMhz')
        return {
            'vdc_name': name,
            'provider_vdc': {'name': provider['@name'], 'href': provider['@href']},
            'description': sanitizeDescription(getChild(body, 'Description')) or '',
            'allocation_model': getChild(body, 'AllocationModel', 'AllocationVApp'),
            'cpu_units': getChild(cpu, 'Units', 'MHz'),
            'cpu_allocated': self.number(getChild(cpu, 'Allocated')),
            'cpu_limit': self.number(getChild(cpu, 'Limit')),
            'mem_units': getChild(memory, 'Units', 'MB'),
            'mem_allocated': self.number(getChild(memory, 'Allocated')),
            'mem_limit': self.number(getChild(memory, 'Limit')),
            'nic_quota': self.number(getChild(body, 'NicQuota')),
            'network_quota': self.number(getChild(body, 'NetworkQuota')),
            'vm_quota': self.number(getChild(body, 'VmQuota')),
            'storage_profiles': [{'name': wildcard['@name'], 'href': wildcard['@href'], 'enabled': True,
                                  'units': 'MB', 'limit': 0, 'default': True}],
            'resource_guaranteed_memory': float(guaranteed_memory) if guaranteed_memory is not None else None,
            'resource_guaranteed_cpu': float(guaranteed_cpu) if guaranteed_cpu is not None else None,
            'vcpu_in_mhz': self.number(vcpu) if vcpu is not None else None,
            'is_thin_provision': self.optionalBool(getChild(body, 'IsThinProvision')),
            'network_pool': {'name': pool.get('@name'), 'href': pool['@href']} if isinstance(pool, dict) else None,
            'uses_fast_provisioning': self.optionalBool(getChild(body, 'UsesFastProvisioning')),
            'over_commit_allowed': self.optionalBool(getChild(body, 'OverCommitAllowed')),
            'vm_discovery_enabled': self.optionalBool(getChild(body, 'VmDiscoveryEnabled')),
            'is_enabled': isTrue(getChild(body, 'IsEnabled', 'true')),
        }

    def build(self, source: VCDObject, scope=None, newName: str = None) -> VCDObject:
        if scope is None:
            raise ValidationError(f'Org VDC {source.name} needs a target organization')
        name = newName or source.name
        if not isinstance(getChild(source.body, 'ProviderVdcReference'), dict):
            raise ValidationError(f'Org VDC {source.name} has no provider VDC reference')
        payload = self.resolver.rewrite(source)
        provider_href = getChild(payload.body, 'ProviderVdcReference')['@href']
        params = self.createParams(payload, name, self.wildcardProfile(provider_href))
        href = self.target.createOrgVdcNative(scope.href, params)
        self.target.waitForReady(href, f'Org VDC {name} creation')
        delay = self.context.settings.vdc_creation_delay
        if delay:
            logger.info('Waiting %s seconds for Org VDC %s to settle before adding storage profiles', delay, name)
            time.sleep(delay)
        self.provisionStorageProfiles(source, href, provider_href)
        return self.target.getObject(href)

    def providerProfiles(self, provider_href: str) -> list:
        """Storage profile records of one provider vdc"""
        return self.reader.listRecords(ObjectType.PROVIDER_VDC_STORAGE_PROFILE, {'@href': provider_href})

    def wildcardProfile(self, provider_href: str) -> dict:
        for record in self.providerProfiles(provider_href):
            if record.get('@name') == WILDCARD_STORAGE_PROFILE:
                return record
        raise ValidationError(f'Provider VDC {provider_href} has no {WILDCARD_STORAGE_PROFILE} storage profile')

    def sourceDefaultProfile(self, source: VCDObject) -> str:
        """Name of the source vdc's default storage profile, when the source is reachable"""
        if self.context.source_reader is None:
            return None
        for ref in source.references('VdcStorageProfiles', 'VdcStorageProfile'):
            try:
                profile = self.context.source_reader.findByLocator(adminProfileHref(ref['@href']))
            except NotFound:
                continue
            if isTrue(getChild(profile.body, 'Default')):
                return ref.get('@name')
        return None

    def updateStorageProfiles(self, vdc_href: str, add: list = (), remove: list = ()) -> None:
        body = {}
        if add:
            body['AddStorageProfile'] = [{
                'Enabled': 'true',
                'Units': 'MB',
                'Limit': '0',
                'Default': 'false',
                'ProviderVdcStorageProfile': {'@href': record['@href'], '@name': record['@name']},
            } for record in add]
        if remove:
            body['RemoveStorageProfile'] = [{'@href': ref['@href']} for ref in remove]
        payload = newDocument('UpdateVdcStorageProfiles', body)
        response = self.target.createObject(f'{vdc_href}/vdcStorageProfiles', payload,
                                            UPDATE_STORAGE_PROFILES_CONTENT_TYPE)
        self.target.waitForTasks(response, 'Storage profile update')

    def editStorageProfile(self, ref: dict, **changes) -> None:
        href = adminProfileHref(ref['@href'])
        profile = self.target.getObject(href)
        for key, value in changes.items():
            setChild(profile.body, key, value)
        stripLinks(profile.body)
        response = self.target.updateObject(href, profile, VDC_STORAGE_PROFILE_CONTENT_TYPE)
        self.target.waitForTasks(response, f'Storage profile {ref.get("@name")} update')

    def provisionStorageProfiles(self, source: VCDObject, vdc_href: str, provider_href: str) -> list:
        """Mirror the provider vdc's enabled profiles, choose the default, then drop the wildcard"""
        records = [record for record in self.providerProfiles(provider_href)
                   if isTrue(record.get('@isEnabled')) and record.get('@name') != WILDCARD_STORAGE_PROFILE]
        if not records:
            raise ValidationError(f'Provider VDC {provider_href} has no enabled storage profile')
        names = [record['@name'] for record in records]
        logger.info('Adding storage profiles %s', ', '.join(names))
        self.updateStorageProfiles(vdc_href, add=records)

        default_name = self.sourceDefaultProfile(source)
        if default_name not in names:
            default_name = names[0]
        vdc = self.target.getObject(vdc_href)
        profiles = {ref['@name']: ref for ref in vdc.references('VdcStorageProfiles', 'VdcStorageProfile')}
        logger.info('Setting %s as default storage profile', default_name)
        self.editStorageProfile(profiles[default_name], Default='true')

        wildcard = profiles.get(WILDCARD_STORAGE_PROFILE)
        if wildcard is not None:
            logger.info('Removing the wildcard storage profile')
            self.editStorageProfile(wildcard, Enabled='false', Default='false')
            self.updateStorageProfiles(vdc_href, remove=[wildcard])
        return names


def adminProfileHref(href: str) -> str:
    return href.replace('/api/vdcStorageProfile/', '/api/admin/vdcStorageProfile/')


class EdgeGatewayBuilder(ObjectBuilder):
    """Edge gateways are created without their internal interfaces, then edited
    once the networks behind those interfaces exist"""
    objectType = ObjectType.EDGE_GATEWAY

    @staticmethod
    def internalNetworks(source: VCDObject) -> set:
        return {name for name, objectType in networkTypesOf(source).items()
                if objectType == ObjectType.ORG_VDC_NETWORK}

    def createPayload(self, source: VCDObject, newName: str = None) -> VCDObject:
        """Gateway with uplinks only, no default route and no service touching internal networks"""
        networkTypes = networkTypesOf(source)
        payload = source.copy()
        configuration = gatewayConfiguration(payload.body)
        uplinks = [interface for interface in gatewayInterfaces(payload.body)
                   if getChild(interface, 'InterfaceType') != 'internal']
        container = getChild(configuration, 'GatewayInterfaces')
        if isinstance(container, dict):
            setChild(container, 'GatewayInterface', uplinks)
        setDefaultRoute(uplinks)
        if getChild(configuration, 'UseDefaultRouteForDnsRelay') is not None:
            setChild(configuration, 'UseDefaultRouteForDnsRelay', 'false')

        services = gatewayServices(payload.body)
        removeDisabledServices(services, REMOVABLE_SERVICES)
        removeInternalServiceEntries(services, self.internalNetworks(source))
        return self._finish(payload, newName, networkTypes)

    def editPayload(self, source: VCDObject, newName: str = None, scopes: dict = None) -> VCDObject:
        """Full gateway configuration with a single default route"""
        networkTypes = networkTypesOf(source)
        payload = source.copy()
        interfaces = gatewayInterfaces(payload.body)
        interface, subnet = selectDefaultRoute(interfaces)
        setDefaultRoute(interfaces, interface, subnet)
        removeDisabledServices(gatewayServices(payload.body), REMOVABLE_SERVICES)
        return self._finish(payload, newName, networkTypes, scopes)

    def servicesPayload(self, source: VCDObject, scopes: dict = None) -> VCDObject:
        """Only the EdgeGatewayServiceConfiguration subtree, references rewritten"""
        networkTypes = networkTypesOf(source)
        payload = source.copy()
        blocks = [block for block in REMOVABLE_SERVICES
                  if block != 'LoadBalancerService' or self.context.settings.services_remove_disabled_load_balancer]
        removeDisabledServices(gatewayServices(payload.body), blocks)
        rewritten = self.resolver.rewrite(payload, scopes, networkTypes)
        services = gatewayServices(rewritten.body)
        stripReadOnly(services)
        return newDocument('EdgeGatewayServiceConfiguration',
                           {key: value for key, value in services.items() if not key.startswith('@xmlns')})

    def _finish(self, payload: VCDObject, newName: str, networkTypes: dict, scopes: dict = None) -> VCDObject:
        stripReadOnly(payload.body)
        sanitizeBodyDescription(payload.body)
        payload.body.setdefault('@xmlns', VCLOUD_NAMESPACE)
        if newName:
            payload.name = newName
        return self.resolver.rewrite(payload, scopes, networkTypes)

    def build(self, source: VCDObject, scope=None, newName: str = None) -> VCDObject:
        if scope is None:
            raise ValidationError(f'Edge gateway {source.name} needs a target Org VDC')
        payload = self.createPayload(source, newName)
        response = self.target.createObject(f'{scope.href}/edgeGateways', payload, self.content_type, self.version)
        return self.target.waitForReady(response.href, f'Edge gateway {payload.name} creation')

    def edit(self, source: VCDObject, gateway: VCDObject, org: VCDObject = None) -> VCDObject:
        """Re-apply the full source configuration to an existing target gateway"""
        payload = self.editPayload(source, gateway.name, {ObjectType.ORGANIZATION: org})
        response = self.target.updateObject(gateway.href, payload, self.content_type, self.version)
        self.target.waitForTasks(response, f'Edge gateway {gateway.name} update')
        self.context.record(self.objectType, gateway.name, 'Edited', 'Internal interfaces and services restored')
        return self.target.getObject(gateway.href)

    def reapplyServices(self, source: VCDObject, gateway: VCDObject, org: VCDObject = None) -> None:
        """Refresh service rules without touching the gateway itself"""
        payload = self.servicesPayload(source, {ObjectType.ORGANIZATION: org})
        response = self.target.createObject(f'{gateway.href}/action/configureServices', payload,
                                            EDGE_GATEWAY_SERVICES_CONTENT_TYPE, self.version)
        self.target.waitForTasks(response, f'Edge gateway {gateway.name} services')
        self.context.record(self.objectType, gateway.name, 'Services applied')


class OrgVdcNetworkBuilder(ObjectBuilder):
    objectType = ObjectType.ORG_VDC_NETWORK

    def payload(self, source: VCDObject, vdc: VCDObject, newName: str = None) -> VCDObject:
        payload = self.resolver.rewrite(source, {ObjectType.ORG_VDC: vdc})
        stripReadOnly(payload.body)
        sanitizeBodyDescription(payload.body)
        payload.body.setdefault('@xmlns', VCLOUD_NAMESPACE)
        if newName:
            payload.name = newName
        return payload

    def build(self, source: VCDObject, scope=None, newName: str = None) -> VCDObject:
        if scope is None:
            raise ValidationError(f'Org VDC network {source.name} needs a target Org VDC')
        payload = self.payload(source, scope, newName)
        response = self.target.createObject(f'{scope.href}/networks', payload, self.content_type, self.version)
        return self.target.waitForReady(response.href, f'Org VDC network {payload.name} creation')


class ExternalNetworkBuilder(ObjectBuilder):
    objectType = ObjectType.EXTERNAL_NETWORK

    def backing(self, source: VCDObject) -> tuple:
        """Operator-chosen (vCenter record, port group record) on the target"""
        ref = getChild(source.body, 'VimPortGroupRef') or {}
        server = getChild(ref, 'VimServerRef') or {}
        prompter = self.context.prompter
        vc_name = prompter.ask(f'vCenter backing external network {source.name}', server.get('@name'))
        vc = self.resolver.lookup(ObjectType.VIRTUAL_CENTER, vc_name)
        portgroup_name = prompter.ask(f'Port group backing external network {source.name}')
        portgroup = self.resolver.lookup(ObjectType.PORTGROUP, portgroup_name, vc)
        return vc, portgroup

    def payload(self, source: VCDObject, vc: dict, portgroup: dict, newName: str = None) -> VCDObject:
        payload = source.copy()
        stripReadOnly(payload.body)
        sanitizeBodyDescription(payload.body)
        configuration = getChild(payload.body, 'Configuration') or {}
        for scope in listify(getChild(getChild(configuration, 'IpScopes') or {}, 'IpScope')):
            removeChild(scope, 'AllocatedIpAddresses')
            removeChild(scope, 'SubAllocations')
        ref = getChild(payload.body, 'VimPortGroupRef')
        if not isinstance(ref, dict):
            ref = {}
            setChild(payload.body, 'VimPortGroupRef', ref)
        setChild(ref, 'VimServerRef', {'@href': vc['@href'], '@name': vc['@name'],
                                       '@type': 'application/vnd.vmware.admin.vmwvirtualcenter+xml'})
        setChild(ref, 'MoRef', portgroup['@moref'])
        setChild(ref, 'VimObjectType', portgroup.get('@portgroupType', 'DV_PORTGROUP'))
        if newName:
            payload.name = newName
        return payload

    def build(self, source: VCDObject, scope=None, newName: str = None) -> VCDObject:
        vc, portgroup = self.backing(source)
        payload = self.payload(source, vc, portgroup, newName)
        return self.submit(f'{self.target.api_url}/admin/extension/externalnets', payload,
                           f'External network {payload.name} creation')


BUILDERS = {
    ObjectType.ORGANIZATION: OrganizationBuilder,
    ObjectType.ROLE: RoleBuilder,
    ObjectType.USER: UserBuilder,
    ObjectType.ORG_VDC: OrgVdcBuilder,
    ObjectType.EDGE_GATEWAY: EdgeGatewayBuilder,
    ObjectType.ORG_VDC_NETWORK: OrgVdcNetworkBuilder,
    ObjectType.EXTERNAL_NETWORK: ExternalNetworkBuilder,
}


def builderFor(objectType: ObjectType, context: MigrationContext) -> ObjectBuilder:
    return BUILDERS[objectType](context)
