# Migration run state for vCD Import/Export
################################################################################
### Copyright 2020-2023 VMware, Inc.
### SPDX-License-Identifier: BSD-2-Clause
################################################################################
from enum import Enum

from vcd import VCDConnection
from vcd_log import getLogger
from vcd_objects import MIGRATABLE_TYPES, ObjectType, VCDObject
from vcd_reader import ObjectReader
from vcd_resolver import ReferenceResolver

logger = getLogger()


class EdgeGatewayState(Enum):
    ABSENT = 'absent'
    CREATED = 'created'
    NETWORKS_PROVISIONED = 'networks-provisioned'
    EDITED = 'edited'


class EdgeGatewayRecord():
    """What a run knows about one source edge gateway.
    absent -> created -> networks-provisioned -> edited"""
    def __init__(self, source_name: str, target_name: str, source: VCDObject = None) -> None:
        self.source_name = source_name
        self.target_name = target_name
        self.source = source
        self.target = None
        self.created = False
        self.state = EdgeGatewayState.ABSENT
        self.internal_networks = set()
        self.ready_networks = set()

    def markCreated(self, target: VCDObject, created: bool, internal_networks=()) -> None:
        if self.state != EdgeGatewayState.ABSENT:
            raise ValueError(f'Edge gateway {self.source_name} is already {self.state.value}')
        self.target = target
        self.created = created
        self.internal_networks = set(internal_networks)
        self.state = EdgeGatewayState.CREATED
        self._checkNetworks()

    def networkReady(self, name: str) -> None:
        """Called once an internal network of the gateway exists on the target"""
        self.ready_networks.add(name)
        self._checkNetworks()

    def _checkNetworks(self) -> None:
        if self.state == EdgeGatewayState.CREATED and self.internal_networks <= self.ready_networks:
            self.state = EdgeGatewayState.NETWORKS_PROVISIONED

    @property
    def pending_networks(self) -> list:
        return sorted(self.internal_networks - self.ready_networks)

    def markEdited(self) -> None:
        if self.state != EdgeGatewayState.NETWORKS_PROVISIONED:
            raise ValueError(f'Edge gateway {self.source_name} cannot be edited while {self.state.value}, '
                             f'waiting for networks {", ".join(self.pending_networks)}')
        self.state = EdgeGatewayState.EDITED

    def __repr__(self) -> str:
        return f'EdgeGatewayRecord({self.source_name} -> {self.target_name}, {self.state.value})'


class MigrationSettings():
    """Run-wide options, loaded from config.ini and the command line"""
    def __init__(self, confirm_before_network_creation: bool = True, vdc_creation_delay: int = 30,
                 services_remove_disabled_load_balancer: bool = False, rename: bool = False,
                 default_password: str = None) -> None:
        self.confirm_before_network_creation = confirm_before_network_creation
        self.vdc_creation_delay = vdc_creation_delay
        self.services_remove_disabled_load_balancer = services_remove_disabled_load_balancer
        self.rename = rename
        self.default_password = default_password


class MigrationContext():
    """Everything one migration run shares between builders"""
    def __init__(self, source: VCDConnection, target: VCDConnection, prompter, settings: MigrationSettings = None) -> None:
        self.source = source
        self.target = target
        self.source_reader = ObjectReader(source) if source is not None else None
        self.target_reader = ObjectReader(target)
        self.prompter = prompter
        self.settings = settings or MigrationSettings()
        self.renames = {objectType: {} for objectType in MIGRATABLE_TYPES}
        self.resolver = ReferenceResolver(self.target_reader, prompter, self.renames)
        self.edgeGatewayMap = {}
        self.results = []

    def targetName(self, objectType: ObjectType, name: str) -> str:
        return self.renames[objectType].get(name, name)

    def rename(self, objectType: ObjectType, source_name: str, target_name: str) -> None:
        if target_name and target_name != source_name:
            logger.info('%s %s will be created as %s', objectType.value, source_name, target_name)
            self.renames[objectType][source_name] = target_name

    def edgeGatewayRecord(self, source_name: str, source: VCDObject = None) -> EdgeGatewayRecord:
        """The run's record for a source gateway, created on first use"""
        record = self.edgeGatewayMap.get(source_name)
        if record is None:
            record = EdgeGatewayRecord(source_name, self.targetName(ObjectType.EDGE_GATEWAY, source_name), source)
            self.edgeGatewayMap[source_name] = record
        elif source is not None and record.source is None:
            record.source = source
        return record

    def record(self, objectType: ObjectType, name: str, result: str, note: str = '') -> None:
        """Append one line to the run results"""
        self.results.append([objectType.value, name, result, note])
