################################################################################
### Copyright 2020-2023 VMware, Inc.
### SPDX-License-Identifier: BSD-2-Clause
################################################################################
import copy
import fnmatch
import itertools

from vcd_errors import NotFound
from vcd_objects import VCDObject, getChild, listify

ORG_ADMIN = 'Organization Administrator'


def userHref(href: str) -> str:
    return (href.replace('/api/admin/org/', '/api/org/')
                .replace('/api/admin/vdc/', '/api/vdc/')
                .replace('/api/admin/vdcStorageProfile/', '/api/vdcStorageProfile/'))


def appendReference(body: dict, container: str, element: str, ref: dict) -> None:
    holder = body.get(container) or {}
    items = listify(holder.get(element))
    items.append(ref)
    holder[element] = items
    body[container] = holder


class FakeVCD():
    """In-memory vCD answering the calls VCDConnection offers"""
    def __init__(self, label: str = 'fake', base_url: str = 'https://vcd.example.com') -> None:
        self.label = label
        self.api_url = f'{base_url}/api'
        self.objects = {}
        self.records = {}
        self.calls = []
        self.passwords = {}
        self.user_payload_keys = {}
        self.vdc_params = []
        self.services = {}
        self._ids = itertools.count(1)

    # ---- seeding ----

    def newHref(self, path: str) -> str:
        return f'{self.api_url}/{path}/{self.label}-{next(self._ids)}'

    def add(self, tag: str, body: dict, href: str, query_type: str = None, record: dict = None) -> VCDObject:
        body = copy.deepcopy(body)
        body['@href'] = href
        self.objects[href] = VCDObject({tag: body})
        if query_type:
            entry = {'@name': body.get('@name'), '@href': href}
            entry.update(record or {})
            self.records.setdefault(query_type, []).append(entry)
        return self.objects[href]

    def addRecord(self, query_type: str, **attributes) -> dict:
        record = {'@' + key: value for key, value in attributes.items()}
        self.records.setdefault(query_type, []).append(record)
        return record

    def byName(self, tag: str, name: str) -> VCDObject:
        for obj in self.objects.values():
            if obj.localTag == tag and obj.name == name:
                return obj
        return None

    def calledTags(self) -> list:
        return [(method, tag) for method, _, tag, _ in self.calls if method in ('POST', 'PUT', 'NATIVE')]

    # ---- VCDConnection interface ----

    def versionFor(self, objectType):
        return None

    def getObject(self, href: str) -> VCDObject:
        if href not in self.objects:
            raise NotFound(f'{href} not found on {self.label}', 404)
        return self.objects[href].copy()

    def query(self, query_type: str, filter: str = None, page_size: int = 128) -> list:
        records = [dict(record) for record in self.records.get(query_type, [])]
        if filter:
            for clause in filter.split(';'):
                attribute, value = clause.split('==', 1)
                records = [record for record in records
                           if fnmatch.fnmatchcase(str(record.get('@' + attribute, '')), value)]
        return records

    def createObject(self, url: str, obj: VCDObject, content_type: str, version: str = None) -> VCDObject:
        self.calls.append(('POST', url, obj.localTag, obj.name))
        if url.endswith('/admin/orgs'):
            return self._createOrg(obj)
        if url.endswith('/admin/roles'):
            return self.add('Role', obj.body, self.newHref('admin/role'), 'role').copy()
        if url.endswith('/roles'):
            return self.add('Role', obj.body, self.newHref('admin/role'), 'role',
                            {'@org': userHref(url[:-len('/roles')])}).copy()
        if url.endswith('/users'):
            return self._createUser(url[:-len('/users')], obj)
        if url.endswith('/edgeGateways'):
            return self._createEdgeGateway(url[:-len('/edgeGateways')], obj)
        if url.endswith('/networks'):
            return self._createNetwork(url[:-len('/networks')], obj)
        if url.endswith('/vdcStorageProfiles'):
            self._updateStorageProfiles(url[:-len('/vdcStorageProfiles')], obj)
            return None
        if url.endswith('/action/configureServices'):
            self.services[url[:-len('/action/configureServices')]] = obj.copy()
            return None
        if url.endswith('/admin/extension/externalnets'):
            return self.add('vmext:VMWExternalNetwork', obj.body, self.newHref('admin/extension/externalnet'),
                            'externalNetwork').copy()
        raise AssertionError(f'Unexpected POST {url}')

    def updateObject(self, href: str, obj: VCDObject, content_type: str, version: str = None) -> VCDObject:
        self.calls.append(('PUT', href, obj.localTag, obj.name))
        existing = self.objects[href]
        body = copy.deepcopy(obj.body)
        body['@href'] = href
        for key in ('@status', 'Link'):
            if key in existing.body:
                body[key] = existing.body[key]
        self.objects[href] = VCDObject({existing.tag: body})
        return None

    def waitForTasks(self, obj, description: str) -> None:
        return None

    def waitForReady(self, href: str, description: str) -> VCDObject:
        self.calls.append(('READY', href, self.objects[href].localTag, self.objects[href].name))
        return self.getObject(href)

    def createOrgVdcNative(self, org_href: str, params: dict) -> str:
        self.calls.append(('NATIVE', org_href, 'AdminVdc', params['vdc_name']))
        self.vdc_params.append(params)
        href = self.newHref('admin/vdc')
        wildcard = self.add('VdcStorageProfile', {'@name': '*', 'Enabled': 'true', 'Default': 'true'},
                            self.newHref('admin/vdcStorageProfile'))
        body = {
            '@name': params['vdc_name'],
            '@status': '1',
            'Link': [{'@rel': 'up', '@href': org_href}],
            'VdcStorageProfiles': {'VdcStorageProfile': [{'@name': '*', '@href': userHref(wildcard.href)}]},
            'AvailableNetworks': {'Network': []},
        }
        self.add('AdminVdc', body, href, 'adminOrgVdc')
        appendReference(self.objects[org_href].body, 'Vdcs', 'Vdc', {'@name': params['vdc_name'], '@href': userHref(href)})
        return href

    # ---- handlers ----

    def _createOrg(self, obj: VCDObject) -> VCDObject:
        href = self.newHref('admin/org')
        return self.add('AdminOrg', obj.body, href, 'organization', {'@href': userHref(href)}).copy()

    def _createUser(self, org_href: str, obj: VCDObject) -> VCDObject:
        self.passwords[obj.name] = getChild(obj.body, 'Password')
        self.user_payload_keys[obj.name] = list(obj.body.keys())
        body = copy.deepcopy(obj.body)
        body.pop('Password', None)
        user = self.add('User', body, self.newHref('admin/user'), 'adminUser')
        appendReference(self.objects[org_href].body, 'Users', 'UserReference', {'@name': obj.name, '@href': user.href})
        return user.copy()

    def _createEdgeGateway(self, vdc_href: str, obj: VCDObject) -> VCDObject:
        body = copy.deepcopy(obj.body)
        body['@status'] = '1'
        return self.add('EdgeGateway', body, self.newHref('admin/edgeGateway'), 'edgeGateway',
                        {'@vdc': userHref(vdc_href)}).copy()

    def _createNetwork(self, vdc_href: str, obj: VCDObject) -> VCDObject:
        body = copy.deepcopy(obj.body)
        body['@status'] = '1'
        body['Link'] = [{'@rel': 'up', '@href': userHref(vdc_href)}]
        network = self.add('OrgVdcNetwork', body, self.newHref('admin/network'), 'orgVdcNetwork')
        ref = {'@name': obj.name, '@href': network.href}
        vdc = self.objects[vdc_href]
        appendReference(vdc.body, 'AvailableNetworks', 'Network', ref)
        org_href = vdc.link('up')
        appendReference(self.objects[org_href].body, 'Networks', 'Network', dict(ref))
        return network.copy()

    def _updateStorageProfiles(self, vdc_href: str, obj: VCDObject) -> None:
        vdc = self.objects[vdc_href]
        container = vdc.body.setdefault('VdcStorageProfiles', {})
        for params in listify(getChild(obj.body, 'AddStorageProfile')):
            name = params['ProviderVdcStorageProfile']['@name']
            profile = self.add('VdcStorageProfile', {'@name': name, 'Enabled': params['Enabled'],
                                                     'Default': params['Default']},
                               self.newHref('admin/vdcStorageProfile'))
            appendReference(vdc.body, 'VdcStorageProfiles', 'VdcStorageProfile',
                            {'@name': name, '@href': userHref(profile.href)})
        for ref in listify(getChild(obj.body, 'RemoveStorageProfile')):
            container['VdcStorageProfile'] = [profile for profile in listify(container.get('VdcStorageProfile'))
                                              if profile['@href'] != ref['@href']]
            self.objects.pop(ref['@href'].replace('/api/vdcStorageProfile/', '/api/admin/vdcStorageProfile/'), None)

    def vdcProfiles(self, vdc_href: str) -> list:
        """(name, enabled, default) of every storage profile of a vdc"""
        profiles = []
        for ref in self.objects[vdc_href].references('VdcStorageProfiles', 'VdcStorageProfile'):
            profile = self.objects[ref['@href'].replace('/api/vdcStorageProfile/', '/api/admin/vdcStorageProfile/')]
            profiles.append((profile.name, getChild(profile.body, 'Enabled'), getChild(profile.body, 'Default')))
        return profiles


def edgeGatewayBody(ext_href: str, net_href: str) -> dict:
    """Acme-EGW: one uplink, one internal interface, both claiming the default route"""
    return {
        '@name': 'Acme-EGW',
        'Description': 'Edge <main>\nfor Acme & co',
        'Configuration': {
            'GatewayBackingConfig': 'compact',
            'GatewayInterfaces': {'GatewayInterface': [
                {
                    'Name': 'uplink',
                    'DisplayName': 'uplink',
                    'Network': {'@name': 'ext-net', '@href': ext_href},
                    'InterfaceType': 'uplink',
                    'SubnetParticipation': {'Gateway': '10.0.0.1', 'Netmask': '255.255.255.0',
                                            'IpAddress': '10.0.0.10', 'UseForDefaultRoute': 'true'},
                    'UseForDefaultRoute': 'true',
                },
                {
                    'Name': 'Acme-Net1',
                    'DisplayName': 'Acme-Net1',
                    'Network': {'@name': 'Acme-Net1', '@href': net_href},
                    'InterfaceType': 'internal',
                    'SubnetParticipation': {'Gateway': '192.168.1.1', 'Netmask': '255.255.255.0',
                                            'IpAddress': '192.168.1.1', 'UseForDefaultRoute': 'true'},
                    'UseForDefaultRoute': 'true',
                },
            ]},
            'EdgeGatewayServiceConfiguration': {
                'GatewayDhcpService': {
                    'IsEnabled': 'false',
                    'Pool': {'IsEnabled': 'true', 'Network': {'@name': 'Acme-Net1', '@href': net_href},
                             'LowIpAddress': '192.168.1.100', 'HighIpAddress': '192.168.1.199'},
                },
                'FirewallService': {'IsEnabled': 'true', 'DefaultAction': 'drop'},
                'NatService': {
                    'IsEnabled': 'true',
                    'NatRule': [
                        {'RuleType': 'SNAT', 'IsEnabled': 'true', 'Id': '65537',
                         'GatewayNatRule': {'Interface': {'@name': 'ext-net', '@href': ext_href},
                                            'OriginalIp': '192.168.1.0/24', 'TranslatedIp': '10.0.0.10'}},
                        {'RuleType': 'DNAT', 'IsEnabled': 'true', 'Id': '65538',
                         'GatewayNatRule': {'Interface': {'@name': 'Acme-Net1', '@href': net_href},
                                            'OriginalIp': '192.168.1.5', 'TranslatedIp': '192.168.1.6'}},
                    ],
                },
                'LoadBalancerService': {
                    'IsEnabled': 'false',
                    'VirtualServer': {'Name': 'web', 'Interface': {'@name': 'ext-net', '@href': ext_href},
                                      'IpAddress': '10.0.0.11'},
                },
            },
            'HaEnabled': 'false',
            'UseDefaultRouteForDnsRelay': 'true',
        },
    }


def seedAcmeSource(source: FakeVCD) -> None:
    """Organization Acme with one user, one Org VDC, one edge gateway and one routed network"""
    api = source.api_url
    org_href = f'{api}/admin/org/acme'
    vdc_href = f'{api}/admin/vdc/acme-vdc'
    role_href = f'{api}/admin/role/org-admin'
    user_href = f'{api}/admin/user/alice'
    egw_href = f'{api}/admin/edgeGateway/acme-egw'
    net_href = f'{api}/admin/network/acme-net1'
    ext_href = f'{api}/admin/network/ext-net'

    source.addRecord('right', name='vApp: Create', href=f'{api}/admin/right/r1')
    source.add('Role', {'@name': ORG_ADMIN, 'Description': 'Administers the organization',
                        'RightReferences': {'RightReference': [{'@name': 'vApp: Create', '@href': f'{api}/admin/right/r1'}]}},
               role_href, 'role', {'@org': f'{api}/org/acme'})
    source.add('User', {'@name': 'alice', 'FullName': 'Alice', 'EmailAddress': 'alice@acme.example.com',
                        'IsEnabled': 'true', 'IsExternal': 'false', 'ProviderType': 'INTEGRATED',
                        'Role': {'@name': ORG_ADMIN, '@href': role_href},
                        'GroupReferences': None},
               user_href, 'adminUser')
    source.add('VdcStorageProfile', {'@name': 'Gold', 'Enabled': 'true', 'Default': 'true'},
               f'{api}/admin/vdcStorageProfile/src-gold')
    source.add('AdminVdc', {
        '@name': 'Acme-VDC',
        '@status': '1',
        'Link': [{'@rel': 'up', '@href': org_href}],
        'Description': 'Acme\nproduction VDC',
        'AllocationModel': 'AllocationPool',
        'ComputeCapacity': {'Cpu': {'Units': 'MHz', 'Allocated': '2000', 'Limit': '4000'},
                            'Memory': {'Units': 'MB', 'Allocated': '4096', 'Limit': '8192'}},
        'VdcStorageProfiles': {'VdcStorageProfile': {'@name': 'Gold', '@href': f'{api}/vdcStorageProfile/src-gold'}},
        'NicQuota': '0',
        'NetworkQuota': '10',
        'VmQuota': '0',
        'IsEnabled': 'true',
        'NetworkPoolReference': {'@name': 'pool-1', '@href': f'{api}/admin/extension/networkPool/p1'},
        'ProviderVdcReference': {'@name': 'PVDC-1', '@href': f'{api}/admin/providervdc/pv1'},
        'IsThinProvision': 'true',
    }, vdc_href, 'adminOrgVdc')
    source.add('EdgeGateway', edgeGatewayBody(ext_href, net_href), egw_href, 'edgeGateway',
               {'@vdc': f'{api}/vdc/acme-vdc'})
    source.add('OrgVdcNetwork', {
        '@name': 'Acme-Net1',
        '@status': '1',
        'Link': [{'@rel': 'up', '@href': f'{api}/vdc/acme-vdc'}],
        'Description': 'Routed network',
        'Configuration': {
            'IpScopes': {'IpScope': {'IsInherited': 'false', 'Gateway': '192.168.1.1', 'Netmask': '255.255.255.0'}},
            'FenceMode': 'natRouted',
        },
        'EdgeGateway': {'@name': 'Acme-EGW', '@href': egw_href},
        'IsShared': 'false',
    }, net_href, 'orgVdcNetwork')
    source.add('AdminOrg', {
        '@name': 'Acme',
        'Description': 'Acme & Co',
        'FullName': 'Acme Corporation',
        'IsEnabled': 'true',
        'Settings': {'@href': f'{api}/admin/org/acme/settings',
                     'OrgGeneralSettings': {'@href': f'{api}/admin/org/acme/settings/general',
                                            'CanPublishCatalogs': 'false'}},
        'Users': {'UserReference': {'@name': 'alice', '@href': user_href}},
        'Vdcs': {'Vdc': {'@name': 'Acme-VDC', '@href': f'{api}/vdc/acme-vdc'}},
        'Networks': {'Network': {'@name': 'Acme-Net1', '@href': net_href}},
    }, org_href, 'organization', {'@href': f'{api}/org/acme'})


def seedTarget(target: FakeVCD, with_role: bool = False) -> None:
    """Provider-level objects a target needs before tenants can be migrated"""
    api = target.api_url
    pvdc_href = f'{api}/admin/providervdc/target-pv1'
    target.addRecord('right', name='vApp: Create', href=f'{api}/admin/right/t-r1')
    target.addRecord('providerVdc', name='PVDC-1', href=pvdc_href)
    target.addRecord('networkPool', name='pool-1', href=f'{api}/admin/extension/networkPool/t-p1')
    for name, enabled in (('Silver', 'true'), ('Gold', 'true'), ('Bronze', 'false'), ('*', 'true')):
        target.addRecord('providerVdcStorageProfile', name=name, isEnabled=enabled, providerVdc=pvdc_href,
                         href=f'{api}/admin/pvdcStorageProfile/{name}')
    target.add('vmext:VMWExternalNetwork', {'@name': 'ext-net'}, f'{api}/admin/extension/externalnet/t-ext',
               'externalNetwork', {'@href': f'{api}/admin/network/t-ext'})
    if with_role:
        target.add('Role', {'@name': ORG_ADMIN}, f'{api}/admin/role/t-org-admin', 'role')
