# Object reader module for vCD Import/Export
################################################################################
### Copyright 2020-2023 VMware, Inc.
### SPDX-License-Identifier: BSD-2-Clause
################################################################################
import fnmatch

from vcd import VCDConnection
from vcd_errors import NotFound
from vcd_log import getLogger
from vcd_objects import TYPE_INFO, ObjectType, VCDObject, hrefId, objectHref

logger = getLogger()

# Generic name queries are unreliable for these types on some source instances,
# so they are looked up through the reference lists of their organization.
ORG_REFERENCE_LISTS = {
    ObjectType.ORG_VDC: ('Vdcs', 'Vdc'),
    ObjectType.ORG_VDC_NETWORK: ('Networks', 'Network'),
    ObjectType.USER: ('Users', 'UserReference'),
}
VDC_NETWORK_LIST = ('AvailableNetworks', 'Network')

# Query filter attribute used to scope a query type to its parent object
SCOPE_FILTERS = {
    ObjectType.EDGE_GATEWAY: 'vdc',
    ObjectType.ROLE: 'org',
    ObjectType.PROVIDER_VDC_STORAGE_PROFILE: 'providerVdc',
    ObjectType.PORTGROUP: 'vc',
}


def scopeHref(scope) -> str:
    """Scopes are either full descriptions or query records"""
    if scope is None:
        return None
    if isinstance(scope, VCDObject):
        return scope.href
    return scope.get('@href')


def userHref(href: str) -> str:
    """Query filters compare against the user-facing href of an org or vdc"""
    return href.replace('/api/admin/org/', '/api/org/').replace('/api/admin/vdc/', '/api/vdc/')


class ObjectReader():
    """Finds objects by name or by href on one vCD instance"""
    def __init__(self, connection: VCDConnection) -> None:
        self.connection = connection

    def listRecords(self, objectType: ObjectType, scope=None, filter: str = None) -> list:
        """All query records of a type, optionally scoped to a parent object"""
        filters = []
        if filter:
            filters.append(filter)
        scope_attribute = SCOPE_FILTERS.get(objectType)
        if scope is not None and scope_attribute is not None:
            filters.append(f'{scope_attribute}=={userHref(scopeHref(scope))}')
        return self.connection.query(TYPE_INFO[objectType].queryType, ';'.join(filters) or None)

    def organizations(self, scope: VCDObject = None) -> list:
        if scope is not None:
            return [scope]
        return [self.findByLocator(record['@href'], ObjectType.ORGANIZATION)
                for record in self.listRecords(ObjectType.ORGANIZATION)]

    def scopedReferences(self, objectType: ObjectType, scope: VCDObject = None) -> list:
        """Reference dicts of OrgVdcs, OrgVdcNetworks or Users held by an organization (or, for networks, a vdc)"""
        if objectType == ObjectType.ORG_VDC_NETWORK and scope is not None and scope.localTag == 'AdminVdc':
            return scope.references(*VDC_NETWORK_LIST)
        references = []
        for org in self.organizations(scope):
            references.extend(org.references(*ORG_REFERENCE_LISTS[objectType]))
        return references

    def findRecord(self, objectType: ObjectType, name: str, scope=None) -> dict:
        """Return the query record (or org reference) of a named object. Raises NotFound."""
        if objectType in ORG_REFERENCE_LISTS:
            candidates = self.scopedReferences(objectType, scope)
        else:
            candidates = self.listRecords(objectType, scope, f'name=={name}')
        for record in candidates:
            if record.get('@name') == name:
                return record
        raise NotFound(f'{objectType.value} {name} not found on {self.connection.label}')

    def find(self, objectType: ObjectType, name: str, scope=None) -> VCDObject:
        """Return the full description of a named object. Raises NotFound."""
        record = self.findRecord(objectType, name, scope)
        logger.debug('Found %s %s at %s', objectType.value, name, record.get('@href'))
        return self.findByLocator(record['@href'], objectType)

    def findByLocator(self, href: str, objectType: ObjectType = None) -> VCDObject:
        """Return the full description behind an href. Raises NotFound."""
        if objectType is not None:
            href = objectHref(objectType, href)
        return self.connection.getObject(href)

    def exists(self, objectType: ObjectType, name: str, scope=None) -> bool:
        try:
            self.findRecord(objectType, name, scope)
        except NotFound:
            return False
        return True

    def search(self, objectType: ObjectType, pattern: str, scope=None) -> list:
        """Records of every object whose name matches a * wildcard pattern"""
        if objectType in ORG_REFERENCE_LISTS:
            return [ref for ref in self.scopedReferences(objectType, scope)
                    if fnmatch.fnmatchcase(ref.get('@name', ''), pattern)]
        return self.listRecords(objectType, scope, f'name=={pattern}')

    def edgeGatewayRecords(self, vdc: VCDObject) -> list:
        return self.listRecords(ObjectType.EDGE_GATEWAY, vdc)

    def owningVdc(self, network: VCDObject, vdcs: list) -> VCDObject:
        """The vdc of a network, matched on the id of its 'up' link"""
        parent = hrefId(network.link('up'))
        for vdc in vdcs:
            if hrefId(vdc.href) == parent:
                return vdc
        return None
