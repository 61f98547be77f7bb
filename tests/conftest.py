"""Pytest configuration and fixtures."""

from typing import Callable, Dict, List, Optional

import pytest
from opentelemetry import trace

from oneinv.models import Host, HostPool, HostTemplate, Vm, VmPool, VmTemplate
from oneinv.schemas.inventory import PatternTemplate


VM_POOL_XML = """<?xml version="1.0"?>
<VM_POOL>
  <VM>
    <ID>0</ID>
    <NAME>usweb01db</NAME>
    <TEMPLATE>
      <CPU><![CDATA[0.5]]></CPU>
      <MEMORY><![CDATA[1024]]></MEMORY>
    </TEMPLATE>
    <USER_TEMPLATE>
      <FQDN><![CDATA[usweb01db.example.com]]></FQDN>
      <ROLE><![CDATA[web]]></ROLE>
    </USER_TEMPLATE>
    <HISTORY_RECORDS>
      <HISTORY><SEQ>0</SEQ><HID>1</HID></HISTORY>
    </HISTORY_RECORDS>
  </VM>
  <VM>
    <ID>1</ID>
    <NAME>euweb02db</NAME>
    <TEMPLATE>
      <CPU>2</CPU>
      <MEMORY>4096</MEMORY>
    </TEMPLATE>
    <USER_TEMPLATE/>
    <HISTORY_RECORDS>
      <HISTORY><SEQ>0</SEQ><HID>1</HID></HISTORY>
      <HISTORY><SEQ>1</SEQ><HID>2</HID></HISTORY>
    </HISTORY_RECORDS>
  </VM>
  <VM>
    <ID>2</ID>
    <NAME>adhoc</NAME>
    <TEMPLATE>
      <MEMORY>512</MEMORY>
    </TEMPLATE>
    <USER_TEMPLATE/>
    <HISTORY_RECORDS/>
  </VM>
</VM_POOL>
"""

HOST_POOL_XML = """<?xml version="1.0"?>
<HOST_POOL>
  <HOST>
    <ID>1</ID>
    <NAME>node1</NAME>
    <STATE>2</STATE>
    <CLUSTER>default</CLUSTER>
    <TEMPLATE>
      <DATACENTER><![CDATA[A]]></DATACENTER>
    </TEMPLATE>
  </HOST>
  <HOST>
    <ID>2</ID>
    <NAME>node2</NAME>
    <STATE>4</STATE>
    <CLUSTER>edge</CLUSTER>
    <TEMPLATE>
      <DATACENTER></DATACENTER>
    </TEMPLATE>
  </HOST>
  <HOST>
    <ID>3</ID>
    <NAME>node3</NAME>
    <STATE>9</STATE>
    <CLUSTER>default</CLUSTER>
    <TEMPLATE>
      <HYPERVISOR>kvm</HYPERVISOR>
    </TEMPLATE>
  </HOST>
</HOST_POOL>
"""


@pytest.fixture
def make_vm() -> Callable[..., Vm]:
    """Factory building VMs with sensible defaults."""

    def _make_vm(
        vm_id: int,
        name: str,
        host_id: Optional[int] = None,
        user_template: Optional[Dict[str, str]] = None,
        cpu: float = 1.0,
        memory: int = 1024,
    ) -> Vm:
        return Vm(
            id=vm_id,
            name=name,
            cpu=cpu,
            host_id=host_id,
            user_template=user_template or {},
            template=VmTemplate(memory=memory),
        )

    return _make_vm


@pytest.fixture
def make_host() -> Callable[..., Host]:
    """Factory building hosts with sensible defaults."""

    def _make_host(
        host_id: int,
        name: Optional[str] = None,
        datacenter: Optional[str] = None,
        cluster: str = "default",
        vms: Optional[List[Vm]] = None,
        state: int = 2,
    ) -> Host:
        return Host(
            id=host_id,
            name=name or f"node{host_id}",
            state=state,
            cluster=cluster,
            template=HostTemplate(datacenter=datacenter),
            vms=VmPool(vms or []),
        )

    return _make_host


@pytest.fixture
def vm_pool(make_vm) -> VmPool:
    """Flat VM pool spread over hosts 1 and 2, plus an orphan."""
    return VmPool(
        [
            make_vm(10, "usweb01db", host_id=1, user_template={"FQDN": "a.example"}),
            make_vm(11, "usweb02db", host_id=2),
            make_vm(12, "euapp01fe", host_id=1),
            make_vm(13, "orphan", host_id=99),
            make_vm(14, "pending"),
        ]
    )


@pytest.fixture
def host_pool(make_host) -> HostPool:
    """Flat host pool with three hosts in two datacenters."""
    return HostPool(
        [
            make_host(1, datacenter="A"),
            make_host(2, datacenter="B", cluster="edge"),
            make_host(3, datacenter="A"),
        ]
    )


@pytest.fixture
def pattern_template() -> PatternTemplate:
    """Default name pattern template."""
    return PatternTemplate()


@pytest.fixture
def vm_pool_xml() -> str:
    """Sample VM_POOL document."""
    return VM_POOL_XML


@pytest.fixture
def host_pool_xml() -> str:
    """Sample HOST_POOL document."""
    return HOST_POOL_XML


@pytest.fixture
def pool_files(tmp_path):
    """Write the sample pool dumps to disk."""
    vm_file = tmp_path / "vm_pool.xml"
    host_file = tmp_path / "host_pool.xml"
    vm_file.write_text(VM_POOL_XML)
    host_file.write_text(HOST_POOL_XML)
    return vm_file, host_file


@pytest.fixture(scope="session", autouse=True)
def shutdown_tracer_provider():
    """Shutdown OpenTelemetry TracerProvider after all tests complete.

    Stops the BatchSpanProcessor thread before pytest closes stdout/stderr.
    """
    yield

    try:
        tracer_provider = trace.get_tracer_provider()
        if hasattr(tracer_provider, "force_flush"):
            tracer_provider.force_flush(timeout_millis=5000)
        if hasattr(tracer_provider, "shutdown"):
            tracer_provider.shutdown()
    except Exception:
        pass
