################################################################################
### Copyright 2020-2023 VMware, Inc.
### SPDX-License-Identifier: BSD-2-Clause
################################################################################
import unittest
from unittest import mock

from fakes import ORG_ADMIN, FakeVCD, seedAcmeSource, seedTarget
from vcd_errors import ReferenceNotFound
from vcd_objects import ObjectType, getChild
from vcd_reader import ObjectReader
from vcd_resolver import ReferenceResolver, gatewayInterfaces, gatewayServices, serviceReferences

TARGET = 'https://target.example.com/api'


class ResolverTestCase(unittest.TestCase):

    def setUp(self):
        self.source = FakeVCD('source')
        seedAcmeSource(self.source)
        self.target = FakeVCD('target', 'https://target.example.com')
        seedTarget(self.target, with_role=True)
        self.prompter = mock.MagicMock()
        self.resolver = ReferenceResolver(ObjectReader(self.target), self.prompter)

    def sourceObject(self, tag, name):
        return self.source.byName(tag, name)


class TestUserAndRole(ResolverTestCase):

    def test_user_role_points_at_target(self):
        user = self.sourceObject('User', 'alice')
        rewritten = self.resolver.rewrite(user)
        role = getChild(rewritten.body, 'Role')
        self.assertEqual(role['@name'], ORG_ADMIN)
        self.assertEqual(role['@href'], f'{TARGET}/admin/role/t-org-admin')
        # Source description is untouched
        self.assertTrue(getChild(user.body, 'Role')['@href'].startswith('https://vcd.example.com'))

    def test_role_rights_point_at_target(self):
        role = self.resolver.rewrite(self.sourceObject('Role', ORG_ADMIN))
        rights = role.references('RightReferences', 'RightReference')
        self.assertEqual([r['@href'] for r in rights], [f'{TARGET}/admin/right/t-r1'])

    def test_missing_reference_is_named(self):
        user = self.sourceObject('User', 'alice')
        getChild(user.body, 'Role')['@name'] = 'Auditor'
        with self.assertRaises(ReferenceNotFound) as raised:
            self.resolver.rewrite(user)
        self.assertEqual(raised.exception.name, 'Auditor')
        self.assertEqual(raised.exception.object_type, ObjectType.ROLE.value)
        self.assertTrue(getChild(user.body, 'Role')['@href'].startswith('https://vcd.example.com'))

    def test_renamed_reference_is_followed(self):
        self.target.add('Role', {'@name': 'Tenant Admin'}, f'{TARGET}/admin/role/t-tenant', 'role')
        self.resolver.renames[ObjectType.ROLE] = {ORG_ADMIN: 'Tenant Admin'}
        role = getChild(self.resolver.rewrite(self.sourceObject('User', 'alice')).body, 'Role')
        self.assertEqual(role['@name'], 'Tenant Admin')
        self.assertEqual(role['@href'], f'{TARGET}/admin/role/t-tenant')

    def test_user_role_is_taken_from_its_organization(self):
        self.target.records['role'] = []
        self.target.add('Role', {'@name': ORG_ADMIN}, f'{TARGET}/admin/role/globex-org-admin', 'role',
                        {'@org': f'{TARGET}/org/t-globex'})
        self.target.add('Role', {'@name': ORG_ADMIN}, f'{TARGET}/admin/role/acme-org-admin', 'role',
                        {'@org': f'{TARGET}/org/t-acme'})
        acme = self.target.add('AdminOrg', {'@name': 'Acme'}, f'{TARGET}/admin/org/t-acme', 'organization')

        user = self.resolver.rewrite(self.sourceObject('User', 'alice'), {ObjectType.ROLE: acme})

        self.assertEqual(getChild(user.body, 'Role')['@href'], f'{TARGET}/admin/role/acme-org-admin')


class TestOrgVdc(ResolverTestCase):

    def test_provider_vdc_and_pool_by_name(self):
        vdc = self.resolver.rewrite(self.sourceObject('AdminVdc', 'Acme-VDC'))
        self.assertEqual(getChild(vdc.body, 'ProviderVdcReference')['@href'], f'{TARGET}/admin/providervdc/target-pv1')
        self.assertEqual(getChild(vdc.body, 'NetworkPoolReference')['@href'], f'{TARGET}/admin/extension/networkPool/t-p1')
        self.prompter.choose.assert_not_called()

    def test_provider_vdc_chosen_by_operator(self):
        self.target.records['providerVdc'] = [{'@name': 'PVDC-A', '@href': f'{TARGET}/admin/providervdc/a'},
                                              {'@name': 'PVDC-B', '@href': f'{TARGET}/admin/providervdc/b'}]
        self.prompter.choose.return_value = 1
        source = self.sourceObject('AdminVdc', 'Acme-VDC')

        vdc = self.resolver.rewrite(source)
        self.resolver.rewrite(source)

        provider = getChild(vdc.body, 'ProviderVdcReference')
        self.assertEqual(provider['@name'], 'PVDC-B')
        self.assertEqual(provider['@href'], f'{TARGET}/admin/providervdc/b')
        self.prompter.choose.assert_called_once()
        self.assertEqual(self.prompter.choose.call_args[0][1], ['PVDC-A', 'PVDC-B'])

    def test_single_provider_vdc_is_used(self):
        self.target.records['providerVdc'] = [{'@name': 'Only', '@href': f'{TARGET}/admin/providervdc/only'}]
        vdc = self.resolver.rewrite(self.sourceObject('AdminVdc', 'Acme-VDC'))
        self.assertEqual(getChild(vdc.body, 'ProviderVdcReference')['@name'], 'Only')
        self.prompter.choose.assert_not_called()

    def test_no_provider_vdc(self):
        self.target.records['providerVdc'] = []
        with self.assertRaises(ReferenceNotFound):
            self.resolver.rewrite(self.sourceObject('AdminVdc', 'Acme-VDC'))

    def test_missing_network_pool_is_dropped(self):
        self.target.records['networkPool'] = []
        vdc = self.resolver.rewrite(self.sourceObject('AdminVdc', 'Acme-VDC'))
        self.assertIsNone(getChild(vdc.body, 'NetworkPoolReference'))
        self.assertIsNotNone(getChild(vdc.body, 'ProviderVdcReference'))


class TestNetworkAndGateway(ResolverTestCase):

    def setUp(self):
        super().setUp()
        self.org = self.target.add('AdminOrg', {
            '@name': 'Acme',
            'Networks': {'Network': {'@name': 'Acme-Net1', '@href': f'{TARGET}/admin/network/t-net1'}},
        }, f'{TARGET}/admin/org/t-acme', 'organization')
        self.vdc = self.target.add('AdminVdc', {'@name': 'Acme-VDC'}, f'{TARGET}/admin/vdc/t-vdc')
        self.target.add('EdgeGateway', {'@name': 'Acme-EGW'}, f'{TARGET}/admin/edgeGateway/t-egw', 'edgeGateway',
                        {'@vdc': f'{TARGET}/vdc/t-vdc'})

    def test_routed_network_points_at_target_gateway(self):
        network = self.resolver.rewrite(self.sourceObject('OrgVdcNetwork', 'Acme-Net1'), {ObjectType.ORG_VDC: self.vdc})
        self.assertEqual(getChild(network.body, 'EdgeGateway')['@href'], f'{TARGET}/admin/edgeGateway/t-egw')

    def test_routed_network_needs_gateway_in_same_vdc(self):
        other = self.target.add('AdminVdc', {'@name': 'Other'}, f'{TARGET}/admin/vdc/other')
        with self.assertRaises(ReferenceNotFound):
            self.resolver.rewrite(self.sourceObject('OrgVdcNetwork', 'Acme-Net1'), {ObjectType.ORG_VDC: other})

    def test_bridged_network_points_at_target_external_network(self):
        network = self.sourceObject('OrgVdcNetwork', 'Acme-Net1')
        network.body['Configuration']['FenceMode'] = 'bridged'
        network.body['Configuration']['ParentNetwork'] = {'@name': 'ext-net',
                                                          '@href': 'https://vcd.example.com/api/admin/network/ext-net'}
        del network.body['EdgeGateway']

        rewritten = self.resolver.rewrite(network, {ObjectType.ORG_VDC: self.vdc})

        parent = rewritten.body['Configuration']['ParentNetwork']
        self.assertEqual(parent, {'@name': 'ext-net', '@href': f'{TARGET}/admin/network/t-ext'})

    def test_bridged_network_without_target_external_network(self):
        network = self.sourceObject('OrgVdcNetwork', 'Acme-Net1')
        network.body['Configuration']['FenceMode'] = 'bridged'
        network.body['Configuration']['ParentNetwork'] = {'@name': 'ext-old', '@href': 'https://vcd.example.com/x'}
        with self.assertRaises(ReferenceNotFound) as raised:
            self.resolver.rewrite(network, {ObjectType.ORG_VDC: self.vdc})
        self.assertEqual(raised.exception.object_type, ObjectType.EXTERNAL_NETWORK.value)

    def test_isolated_network_is_unchanged(self):
        network = self.sourceObject('OrgVdcNetwork', 'Acme-Net1')
        network.body['Configuration']['FenceMode'] = 'isolated'
        del network.body['EdgeGateway']

        rewritten = self.resolver.rewrite(network, {ObjectType.ORG_VDC: self.vdc})

        self.assertEqual(rewritten.body, network.body)
        self.assertIsNot(rewritten.body, network.body)

    def test_gateway_interfaces_and_service_rules(self):
        source = self.sourceObject('EdgeGateway', 'Acme-EGW')
        gateway = self.resolver.rewrite(source, {ObjectType.ORGANIZATION: self.org})

        hrefs = {i['Network']['@name']: i['Network']['@href'] for i in gatewayInterfaces(gateway.body)}
        self.assertEqual(hrefs, {'ext-net': f'{TARGET}/admin/network/t-ext',
                                 'Acme-Net1': f'{TARGET}/admin/network/t-net1'})
        refs = [ref for _, _, ref in serviceReferences(gatewayServices(gateway.body))]
        self.assertEqual(len(refs), 4)
        for ref in refs:
            self.assertTrue(ref['@href'].startswith(TARGET))

    def test_missing_internal_network(self):
        self.org.body['Networks'] = None
        with self.assertRaises(ReferenceNotFound) as raised:
            self.resolver.rewrite(self.sourceObject('EdgeGateway', 'Acme-EGW'), {ObjectType.ORGANIZATION: self.org})
        self.assertEqual(raised.exception.name, 'Acme-Net1')


if __name__ == '__main__':
    unittest.main()
