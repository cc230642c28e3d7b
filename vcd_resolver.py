# Reference resolver module for vCD Import/Export
################################################################################
### Copyright 2020-2023 VMware, Inc.
### SPDX-License-Identifier: BSD-2-Clause
################################################################################
from vcd_errors import NotFound, ReferenceNotFound
from vcd_log import getLogger
from vcd_objects import ObjectType, VCDObject, getChild, listify, removeChild
from vcd_reader import ObjectReader

logger = getLogger()

# Where an edge gateway's service rules point at gateway interfaces, as
# (service block, entry, nested element or None, reference element)
EDGE_GATEWAY_SERVICE_REFERENCES = [
    ('NatService', 'NatRule', 'GatewayNatRule', 'Interface'),
    ('StaticRoutingService', 'StaticRoute', None, 'GatewayInterface'),
    ('GatewayDhcpService', 'Pool', None, 'Network'),
    ('LoadBalancerService', 'VirtualServer', None, 'Interface'),
    ('GatewayIpsecVpnService', 'Endpoint', None, 'Network'),
]

INTERFACE_TYPES = {
    'uplink': ObjectType.EXTERNAL_NETWORK,
    'internal': ObjectType.ORG_VDC_NETWORK,
}


def gatewayConfiguration(body: dict) -> dict:
    return getChild(body, 'Configuration') or {}


def gatewayInterfaces(body: dict) -> list:
    interfaces = getChild(gatewayConfiguration(body), 'GatewayInterfaces') or {}
    return listify(getChild(interfaces, 'GatewayInterface'))


def gatewayServices(body: dict) -> dict:
    return getChild(gatewayConfiguration(body), 'EdgeGatewayServiceConfiguration') or {}


def serviceReferences(services: dict):
    """Yield (service block name, entry, reference) for every interface reference in the service rules"""
    for block_name, entry_name, nested, ref_name in EDGE_GATEWAY_SERVICE_REFERENCES:
        block = getChild(services, block_name)
        if not isinstance(block, dict):
            continue
        for entry in listify(getChild(block, entry_name)):
            holder = getChild(entry, nested) if nested else entry
            ref = getChild(holder, ref_name) if isinstance(holder, dict) else None
            if isinstance(ref, dict):
                yield block_name, entry, ref


def networkTypesOf(gateway: VCDObject) -> dict:
    """Map each interface network name of a gateway to its ObjectType"""
    types = {}
    for interface in gatewayInterfaces(gateway.body):
        network = getChild(interface, 'Network') or {}
        interface_type = getChild(interface, 'InterfaceType')
        if network.get('@name'):
            types[network['@name']] = INTERFACE_TYPES.get(interface_type, ObjectType.ORG_VDC_NETWORK)
    return types


class ReferenceResolver():
    """Rewrites the references of a source description so that they point at
    the same-named objects on the target instance"""
    def __init__(self, reader: ObjectReader, prompter=None, renames: dict = None) -> None:
        self.reader = reader
        self.prompter = prompter
        self.renames = renames if renames is not None else {}
        self.provider_vdc_choices = {}

    def targetName(self, objectType: ObjectType, name: str) -> str:
        return self.renames.get(objectType, {}).get(name, name)

    def lookup(self, objectType: ObjectType, name: str, scope=None) -> dict:
        """Find the target record for a reference. Raises ReferenceNotFound."""
        try:
            return self.reader.findRecord(objectType, self.targetName(objectType, name), scope)
        except NotFound:
            logger.error('Reference %s "%s" could not be found on the target', objectType.value, name)
            raise ReferenceNotFound(name, objectType.value)

    def rewriteReference(self, ref: dict, objectType: ObjectType, scope=None) -> None:
        name = ref.get('@name')
        if not name:
            raise ReferenceNotFound(str(ref.get('@href')), objectType.value)
        record = self.lookup(objectType, name, scope)
        ref['@name'] = record['@name']
        ref['@href'] = record['@href']
        if '@id' in ref:
            del ref['@id']

    def resolveProviderVdc(self, name: str) -> dict:
        """The same-named provider vdc, else the only one, else the operator's choice"""
        if name in self.provider_vdc_choices:
            return self.provider_vdc_choices[name]
        records = self.reader.listRecords(ObjectType.PROVIDER_VDC)
        chosen = None
        for record in records:
            if record.get('@name') == name:
                chosen = record
        if chosen is None and len(records) == 1:
            chosen = records[0]
            logger.warning('Provider VDC %s not found on the target, using %s', name, chosen['@name'])
        elif chosen is None and len(records) > 1 and self.prompter is not None:
            names = [record['@name'] for record in records]
            index = self.prompter.choose(f'Provider VDC {name} not found on the target. Select the provider VDC to use', names)
            chosen = records[index]
        if chosen is None:
            logger.error('Reference %s "%s" could not be found on the target', ObjectType.PROVIDER_VDC.value, name)
            raise ReferenceNotFound(name, ObjectType.PROVIDER_VDC.value)
        self.provider_vdc_choices[name] = chosen
        return chosen

    def rewrite(self, descriptor: VCDObject, scopes: dict = None, networkTypes: dict = None) -> VCDObject:
        """Return a copy of descriptor with every reference pointing at the target.
        Raises ReferenceNotFound; the input descriptor is never modified."""
        scopes = scopes or {}
        result = descriptor.copy()
        objectType = result.objectType
        if objectType == ObjectType.ROLE:
            self._rewriteRole(result)
        elif objectType == ObjectType.USER:
            self._rewriteUser(result, scopes)
        elif objectType == ObjectType.ORG_VDC:
            self._rewriteOrgVdc(result)
        elif objectType == ObjectType.ORG_VDC_NETWORK:
            self._rewriteOrgVdcNetwork(result, scopes)
        elif objectType == ObjectType.EDGE_GATEWAY:
            self._rewriteEdgeGateway(result, scopes, networkTypes)
        return result

    def _rewriteRole(self, role: VCDObject) -> None:
        for right in role.references('RightReferences', 'RightReference'):
            self.rewriteReference(right, ObjectType.RIGHT)

    def _rewriteUser(self, user: VCDObject, scopes: dict) -> None:
        role = getChild(user.body, 'Role')
        if isinstance(role, dict):
            self.rewriteReference(role, ObjectType.ROLE, scopes.get(ObjectType.ROLE))

    def _rewriteOrgVdc(self, vdc: VCDObject) -> None:
        provider = getChild(vdc.body, 'ProviderVdcReference')
        if isinstance(provider, dict):
            record = self.resolveProviderVdc(provider.get('@name'))
            provider['@name'] = record['@name']
            provider['@href'] = record['@href']
        pool = getChild(vdc.body, 'NetworkPoolReference')
        if isinstance(pool, dict):
            try:
                record = self.reader.findRecord(ObjectType.NETWORK_POOL, pool.get('@name'))
                pool['@href'] = record['@href']
            except NotFound:
                logger.warning('Network pool %s not found on the target, the provider VDC default will be used',
                               pool.get('@name'))
                removeChild(vdc.body, 'NetworkPoolReference')

    def _rewriteOrgVdcNetwork(self, network: VCDObject, scopes: dict) -> None:
        configuration = getChild(network.body, 'Configuration') or {}
        fence_mode = getChild(configuration, 'FenceMode')
        if fence_mode == 'natRouted':
            gateway = getChild(network.body, 'EdgeGateway')
            if isinstance(gateway, dict):
                self.rewriteReference(gateway, ObjectType.EDGE_GATEWAY, scopes.get(ObjectType.ORG_VDC))
        elif fence_mode == 'bridged':
            parent = getChild(configuration, 'ParentNetwork')
            if isinstance(parent, dict):
                self.rewriteReference(parent, ObjectType.EXTERNAL_NETWORK)

    def _rewriteEdgeGateway(self, gateway: VCDObject, scopes: dict, networkTypes: dict = None) -> None:
        if networkTypes is None:
            networkTypes = networkTypesOf(gateway)
        org_scope = scopes.get(ObjectType.ORGANIZATION)

        def scopeFor(objectType):
            return org_scope if objectType == ObjectType.ORG_VDC_NETWORK else None

        for interface in gatewayInterfaces(gateway.body):
            network = getChild(interface, 'Network')
            if isinstance(network, dict):
                objectType = networkTypes.get(network.get('@name'), ObjectType.ORG_VDC_NETWORK)
                self.rewriteReference(network, objectType, scopeFor(objectType))

        for _, _, ref in serviceReferences(gatewayServices(gateway.body)):
            objectType = networkTypes.get(ref.get('@name'), ObjectType.ORG_VDC_NETWORK)
            self.rewriteReference(ref, objectType, scopeFor(objectType))
