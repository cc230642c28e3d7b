# vCD connection module
################################################################################
### Copyright 2020-2023 VMware, Inc.
### SPDX-License-Identifier: BSD-2-Clause
################################################################################
import time

import requests
from pyvcloud.vcd.client import E, EntityType, RelationType
from pyvcloud.vcd.exceptions import VcdException

from vcd_auth import VCDSession
from vcd_errors import (ConflictError, PollTimeout, TransportError, ValidationError, VCDError,
                        errorForResponse)
from vcd_log import getLogger
from vcd_objects import ObjectType, VCDObject, getChild, listify

logger = getLogger()

READY_STATUS = '1'
FAILED_STATUS = '-1'
TASK_FAILED_STATUSES = ('error', 'aborted', 'canceled')


def pollUntil(check, interval: float, max_attempts: int, description: str):
    """Call check() every interval seconds until it returns something truthy.
    Raises PollTimeout after max_attempts calls."""
    for attempt in range(1, max_attempts + 1):
        result = check()
        if result:
            return result
        if attempt < max_attempts:
            logger.debug('%s not complete yet (attempt %s/%s), waiting %ss', description, attempt, max_attempts, interval)
            time.sleep(interval)
    raise PollTimeout(f'{description} did not complete after {max_attempts} attempts')


def tasksOf(obj: VCDObject) -> list:
    """The Task bodies carried by a response: either the Task itself or the object's Tasks list"""
    if obj.localTag == 'Task':
        return [obj.body]
    return listify(getChild(getChild(obj.body, 'Tasks', {}) or {}, 'Task'))


def xmlBool(value) -> str:
    return 'true' if value else 'false'


def createVdcParams(params: dict):
    """CreateVdcParams built with pyvcloud's element maker. References are taken by href, never by name."""
    vdc_params = E.CreateVdcParams(
        E.Description(params.get('description') or ''),
        E.AllocationModel(params['allocation_model']),
        E.ComputeCapacity(
            E.Cpu(E.Units(params['cpu_units']), E.Allocated(str(params['cpu_allocated'])),
                  E.Limit(str(params['cpu_limit']))),
            E.Memory(E.Units(params['mem_units']), E.Allocated(str(params['mem_allocated'])),
                     E.Limit(str(params['mem_limit'])))),
        E.NicQuota(str(params['nic_quota'])),
        E.NetworkQuota(str(params['network_quota'])),
        E.VmQuota(str(params['vm_quota'])),
        E.IsEnabled(xmlBool(params['is_enabled'])),
        name=params['vdc_name'])
    for profile in params['storage_profiles']:
        vdc_params.append(E.VdcStorageProfile(
            E.Enabled(xmlBool(profile['enabled'])),
            E.Units(profile['units']),
            E.Limit(str(profile['limit'])),
            E.Default(xmlBool(profile['default'])),
            E.ProviderVdcStorageProfile(href=profile['href'])))
    if params.get('resource_guaranteed_memory') is not None:
        vdc_params.append(E.ResourceGuaranteedMemory(str(params['resource_guaranteed_memory'])))
    if params.get('resource_guaranteed_cpu') is not None:
        vdc_params.append(E.ResourceGuaranteedCpu(str(params['resource_guaranteed_cpu'])))
    if params.get('vcpu_in_mhz') is not None:
        vdc_params.append(E.VCpuInMhz(str(params['vcpu_in_mhz'])))
    if params.get('is_thin_provision') is not None:
        vdc_params.append(E.IsThinProvision(xmlBool(params['is_thin_provision'])))
    pool = params.get('network_pool')
    if pool:
        vdc_params.append(E.NetworkPoolReference(href=pool['href'], name=pool['name']))
    provider = params['provider_vdc']
    vdc_params.append(E.ProviderVdcReference(href=provider['href'], name=provider['name']))
    for key, tag in (('uses_fast_provisioning', 'UsesFastProvisioning'), ('over_commit_allowed', 'OverCommitAllowed'),
                     ('vm_discovery_enabled', 'VmDiscoveryEnabled')):
        if params.get(key) is not None:
            vdc_params.append(getattr(E, tag)(xmlBool(params[key])))
    return vdc_params


class VCDConnection():
    """REST access to one vCloud Director instance through an open session"""
    def __init__(self, session: VCDSession, schema_versions: dict = None, poll_interval: float = 5,
                 poll_max_attempts: int = 120, label: str = 'vCD') -> None:
        self.session = session
        self.schema_versions = schema_versions or {}
        self.poll_interval = poll_interval
        self.poll_max_attempts = poll_max_attempts
        self.label = label

    @property
    def api_url(self) -> str:
        return self.session.api_url

    def versionFor(self, objectType: ObjectType) -> str:
        """The schema version pinned for an object type, or the session default"""
        if objectType is None:
            return None
        return self.schema_versions.get(objectType.value)

    def _send(self, method: str, url: str, action: str, content_type: str = None, version: str = None,
              **kwargs) -> requests.Response:
        myHeader = self.session.headers(content_type=content_type, version=version)
        try:
            response = requests.request(method, url, headers=myHeader, verify=self.session.ssl_verify, **kwargs)
        except requests.exceptions.RequestException as e:
            raise TransportError(f'{action} could not reach {self.session.base_url}: {e}')
        if response.status_code not in (200, 201, 202, 204):
            raise errorForResponse(response, action)
        return response

    def invokeVCDGET(self, url: str, params: dict = None) -> requests.Response:
        """Invokes a vCD GET request"""
        return self._send('GET', url, f'GET {url}', params=params)

    def invokeVCDPOST(self, url: str, payload: str, content_type: str, version: str = None) -> requests.Response:
        """Invokes a vCD POST request"""
        return self._send('POST', url, f'POST {url}', content_type=content_type, version=version,
                          data=payload.encode('utf-8'))

    def invokeVCDPUT(self, url: str, payload: str, content_type: str, version: str = None) -> requests.Response:
        """Invokes a vCD PUT request"""
        return self._send('PUT', url, f'PUT {url}', content_type=content_type, version=version,
                          data=payload.encode('utf-8'))

    def getObject(self, href: str) -> VCDObject:
        """Retrieve the full description behind an href"""
        response = self.invokeVCDGET(href)
        return VCDObject.fromXml(response.content)

    def query(self, query_type: str, filter: str = None, page_size: int = 128) -> list:
        """Run a records query and return every record, following nextPage links"""
        params = {'type': query_type, 'format': 'records', 'pageSize': page_size}
        if filter:
            params['filter'] = filter
        response = self.invokeVCDGET(f'{self.api_url}/query', params=params)
        results = VCDObject.fromXml(response.content)
        records = []
        while True:
            for key, value in results.body.items():
                if not key.startswith('@') and key.endswith('Record'):
                    records.extend(listify(value))
            next_page = results.link('nextPage')
            if next_page is None:
                break
            results = self.getObject(next_page)
        return records

    def createObject(self, url: str, obj: VCDObject, content_type: str, version: str = None) -> VCDObject:
        """POST a description and return the platform's response document"""
        response = self.invokeVCDPOST(url, obj.toXml(), content_type, version)
        if not response.content:
            return None
        return VCDObject.fromXml(response.content)

    def updateObject(self, href: str, obj: VCDObject, content_type: str, version: str = None) -> VCDObject:
        """PUT a description and return the platform's response document (usually a Task)"""
        response = self.invokeVCDPUT(href, obj.toXml(), content_type, version)
        if not response.content:
            return None
        return VCDObject.fromXml(response.content)

    def waitForTask(self, task: dict, description: str) -> VCDObject:
        """Poll a Task until it succeeds. Raises on error or timeout."""
        href = task.get('@href')

        def check():
            current = self.getObject(href)
            status = current.status
            if status == 'success':
                return current
            if status in TASK_FAILED_STATUSES:
                error = getChild(current.body, 'Error') or {}
                message = error.get('@message') if isinstance(error, dict) else str(error)
                raise ValidationError(f'{description} failed with task status {status}: {message}')
            return None

        if task.get('@status') == 'success':
            return None
        return pollUntil(check, self.poll_interval, self.poll_max_attempts, description)

    def waitForTasks(self, obj: VCDObject, description: str) -> None:
        if obj is None:
            return
        for task in tasksOf(obj):
            self.waitForTask(task, description)

    def waitForReady(self, href: str, description: str) -> VCDObject:
        """Poll an object until its status attribute reports ready"""
        def check():
            current = self.getObject(href)
            if current.status == FAILED_STATUS:
                raise ValidationError(f'{description}: the platform could not create the object')
            if current.status is None or current.status == READY_STATUS:
                return current
            return None

        return pollUntil(check, self.poll_interval, self.poll_max_attempts, description)

    def createOrgVdcNative(self, org_href: str, params: dict) -> str:
        """Create an Org VDC through pyvcloud, posting CreateVdcParams to the admin organization.
        Returns the href of the new AdminVdc."""
        client = self.session.getPyvcloudClient()
        try:
            admin_org = client.get_resource(org_href)
            vdc_resource = client.post_linked_resource(admin_org, RelationType.ADD, EntityType.VDCS_PARAMS.value,
                                                       createVdcParams(params))
        except VcdException as e:
            status_code = getattr(e, 'status_code', None)
            message = f'Org VDC {params.get("vdc_name")} creation failed: {e}'
            if status_code == 409:
                raise ConflictError(message, status_code)
            if status_code == 400:
                raise ValidationError(message, status_code)
            raise VCDError(message, status_code)
        except requests.exceptions.RequestException as e:
            raise TransportError(f'Org VDC {params.get("vdc_name")} creation could not reach the target: {e}')
        return vdc_resource.get('href')
