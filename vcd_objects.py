# vCD object description module for vCD Import/Export
################################################################################
### Copyright 2020-2023 VMware, Inc.
### SPDX-License-Identifier: BSD-2-Clause
################################################################################
import copy
import json
import re
from collections import namedtuple
from enum import Enum

import xmltodict

VCLOUD_NAMESPACE = 'http://www.vmware.com/vcloud/v1.5'
DESCRIPTION_MAX_LENGTH = 128


class ObjectType(Enum):
    """Every kind of vCD object the scripts read, create or reference"""
    ORGANIZATION = 'Organization'
    ROLE = 'Role'
    USER = 'User'
    ORG_VDC = 'OrgVdc'
    ORG_VDC_NETWORK = 'OrgVdcNetwork'
    EXTERNAL_NETWORK = 'ExternalNetwork'
    EDGE_GATEWAY = 'EdgeGateway'
    # Reference-only kinds, resolved on the target but never migrated
    PROVIDER_VDC = 'ProviderVdc'
    PROVIDER_VDC_STORAGE_PROFILE = 'ProviderVdcStorageProfile'
    NETWORK_POOL = 'NetworkPool'
    RIGHT = 'Right'
    VIRTUAL_CENTER = 'VirtualCenter'
    PORTGROUP = 'Portgroup'

    @classmethod
    def fromName(cls, name: str) -> 'ObjectType':
        for t in cls:
            if t.value.lower() == name.lower():
                return t
        raise ValueError(f'Unknown object type {name}')


TypeInfo = namedtuple('TypeInfo', ['tag', 'queryType', 'contentType'])

TYPE_INFO = {
    ObjectType.ORGANIZATION: TypeInfo('AdminOrg', 'organization', 'application/vnd.vmware.admin.organization+xml'),
    ObjectType.ROLE: TypeInfo('Role', 'role', 'application/vnd.vmware.admin.role+xml'),
    ObjectType.USER: TypeInfo('User', 'adminUser', 'application/vnd.vmware.admin.user+xml'),
    ObjectType.ORG_VDC: TypeInfo('AdminVdc', 'adminOrgVdc', 'application/vnd.vmware.admin.createVdcParams+xml'),
    ObjectType.ORG_VDC_NETWORK: TypeInfo('OrgVdcNetwork', 'orgVdcNetwork', 'application/vnd.vmware.vcloud.orgVdcNetwork+xml'),
    ObjectType.EXTERNAL_NETWORK: TypeInfo('VMWExternalNetwork', 'externalNetwork', 'application/vnd.vmware.admin.vmwexternalnet+xml'),
    ObjectType.EDGE_GATEWAY: TypeInfo('EdgeGateway', 'edgeGateway', 'application/vnd.vmware.admin.edgeGateway+xml'),
    ObjectType.PROVIDER_VDC: TypeInfo('ProviderVdc', 'providerVdc', None),
    ObjectType.PROVIDER_VDC_STORAGE_PROFILE: TypeInfo('ProviderVdcStorageProfile', 'providerVdcStorageProfile', None),
    ObjectType.NETWORK_POOL: TypeInfo('VMWNetworkPool', 'networkPool', None),
    ObjectType.RIGHT: TypeInfo('Right', 'right', None),
    ObjectType.VIRTUAL_CENTER: TypeInfo('VimServer', 'virtualCenter', None),
    ObjectType.PORTGROUP: TypeInfo('Portgroup', 'portgroup', None),
}

MIGRATABLE_TYPES = [
    ObjectType.ORGANIZATION,
    ObjectType.ROLE,
    ObjectType.USER,
    ObjectType.ORG_VDC,
    ObjectType.ORG_VDC_NETWORK,
    ObjectType.EXTERNAL_NETWORK,
    ObjectType.EDGE_GATEWAY,
]

EDGE_GATEWAY_SERVICES_CONTENT_TYPE = 'application/vnd.vmware.admin.edgeGatewayServiceConfiguration+xml'
UPDATE_STORAGE_PROFILES_CONTENT_TYPE = 'application/vnd.vmware.admin.updateVdcStorageProfiles+xml'
VDC_STORAGE_PROFILE_CONTENT_TYPE = 'application/vnd.vmware.admin.vdcStorageProfile+xml'

# Query records point at the user-facing representation of some objects.
# The full description lives under the admin (or extension) URL.
ADMIN_HREF_REWRITES = {
    ObjectType.ORGANIZATION: ('/api/org/', '/api/admin/org/'),
    ObjectType.ORG_VDC: ('/api/vdc/', '/api/admin/vdc/'),
    ObjectType.ORG_VDC_NETWORK: ('/api/network/', '/api/admin/network/'),
    ObjectType.EXTERNAL_NETWORK: ('/api/admin/network/', '/api/admin/extension/externalnet/'),
}


def localName(key: str) -> str:
    """Strip the namespace prefix from an element or attribute key"""
    return key.split(':')[-1]


def objectTypeForTag(tag: str) -> ObjectType:
    """Return the migratable ObjectType for a top-level tag, or None"""
    name = localName(tag)
    for t in MIGRATABLE_TYPES:
        if TYPE_INFO[t].tag == name:
            return t
    return None


def objectHref(objectType: ObjectType, href: str) -> str:
    """Turn a query record href into the href of the full admin description"""
    rewrite = ADMIN_HREF_REWRITES.get(objectType)
    if rewrite and rewrite[0] in href:
        return href.replace(rewrite[0], rewrite[1])
    return href


def hrefId(href: str) -> str:
    """The trailing UUID of an href, used to compare admin and user hrefs"""
    if not href:
        return None
    return href.rstrip('/').split('/')[-1]


def listify(value) -> list:
    """xmltodict returns a dict for a single child and a list for several"""
    if value is None:
        return []
    if isinstance(value, list):
        return value
    return [value]


def childKey(node: dict, name: str) -> str:
    """Return the actual key of a child element, ignoring its namespace prefix"""
    if not isinstance(node, dict):
        return None
    for key in node:
        if localName(key) == name:
            return key
    return None


def getChild(node: dict, name: str, default=None):
    key = childKey(node, name)
    if key is None:
        return default
    return node[key]


def setChild(node: dict, name: str, value) -> None:
    key = childKey(node, name)
    node[key if key is not None else name] = value


def removeChild(node: dict, name: str) -> None:
    key = childKey(node, name)
    if key is not None:
        del node[key]


def insertAfter(node: dict, afterName: str, key: str, value) -> None:
    """Insert a child element right after another one, keeping schema order.
    Appends at the end if afterName is not present."""
    items = [(k, v) for k, v in node.items() if k != key]
    node.clear()
    inserted = False
    for k, v in items:
        node[k] = v
        if localName(k) == afterName:
            node[key] = value
            inserted = True
    if not inserted:
        node[key] = value


def isTrue(value) -> bool:
    return str(value).strip().lower() == 'true'


def stripLinks(node) -> None:
    """Recursively remove Link elements, which are never accepted on create"""
    if isinstance(node, dict):
        for key in [k for k in node if localName(k) == 'Link']:
            del node[key]
        for value in node.values():
            stripLinks(value)
    elif isinstance(node, list):
        for item in node:
            stripLinks(item)


def stripReadOnly(body: dict, extra: tuple = ()) -> None:
    """Remove identity attributes, links, tasks and any extra child elements"""
    for key in list(body.keys()):
        name = localName(key)
        if key in ('@href', '@id', '@type', '@status', '@operationKey') or name == 'schemaLocation':
            del body[key]
        elif name in ('Link', 'Tasks') or name in extra:
            del body[key]
    stripLinks(body)


def sanitizeDescription(text: str, maxLength: int = DESCRIPTION_MAX_LENGTH) -> str:
    """Make a free-text description acceptable to the platform"""
    if text is None:
        return None
    text = re.sub(r'[\r\n]+', ' ', str(text))
    text = re.sub(r'[&<>]', '', text)
    return text.strip()[:maxLength]


class VCDObject:
    """The description of one vCD object, as the xmltodict document of its XML representation"""
    def __init__(self, document: dict) -> None:
        if not isinstance(document, dict) or len(document) != 1:
            raise ValueError('A vCD object document must have exactly one top-level element')
        self.document = document
        self.tag = next(iter(document))
        if self.document[self.tag] is None:
            self.document[self.tag] = {}
        self.objectType = objectTypeForTag(self.tag)

    @property
    def body(self) -> dict:
        return self.document[self.tag]

    @property
    def localTag(self) -> str:
        return localName(self.tag)

    @property
    def name(self) -> str:
        return self.body.get('@name')

    @name.setter
    def name(self, value: str) -> None:
        self.body['@name'] = value

    @property
    def href(self) -> str:
        return self.body.get('@href')

    @property
    def status(self) -> str:
        return self.body.get('@status')

    def copy(self) -> 'VCDObject':
        return VCDObject(copy.deepcopy(self.document))

    def link(self, rel: str, mediaType: str = None) -> str:
        """Return the href of the first Link with the given relation (and media type)"""
        for link in listify(getChild(self.body, 'Link')):
            if link.get('@rel') == rel and (mediaType is None or link.get('@type') == mediaType):
                return link.get('@href')
        return None

    def references(self, container: str, element: str) -> list:
        """List the reference dicts held in a container element, e.g. Vdcs/Vdc"""
        return listify(getChild(getChild(self.body, container, {}) or {}, element))

    def toXml(self) -> str:
        return xmltodict.unparse(self.document)

    @classmethod
    def fromXml(cls, text) -> 'VCDObject':
        return cls(xmltodict.parse(text))

    def __repr__(self) -> str:
        return f'VCDObject({self.localTag} "{self.name}")'


def newDocument(tag: str, body: dict) -> VCDObject:
    """Create a payload document in the vCloud namespace"""
    content = {'@xmlns': VCLOUD_NAMESPACE}
    content.update(body)
    return VCDObject({tag: content})


def exportFilename(obj: VCDObject) -> str:
    name = re.sub(r'[^A-Za-z0-9._-]+', '_', obj.name or 'unnamed')
    return f'{obj.objectType.value}-{name}.json'


def writeObjectFile(obj: VCDObject, fname) -> None:
    """Save one object description, including its type tag, as JSON"""
    with open(fname, 'w') as outfile:
        json.dump(obj.document, outfile, indent=4)


def readObjectFile(fname) -> VCDObject:
    """Load an exported object description. The type is inferred from the top-level tag."""
    with open(fname) as filehandle:
        document = json.load(filehandle)
    obj = VCDObject(document)
    if obj.objectType is None:
        raise ValueError(f'{fname} does not contain a supported vCD object (found {obj.tag})')
    return obj
