import collections
import subprocess

import pytest

from fbbench import sysinfo
from fbbench.sysinfo import (
    DarwinProfile,
    HostProfile,
    LinuxProfile,
    WindowsProfile,
    collect_storage_facts,
    collect_system_facts,
    get_profile,
)


class StaticProfile(HostProfile):
    def processor(self):
        return "Test CPU"

    def total_memory(self):
        return "1024"

    def os_name(self):
        return "TestOS"

    def os_build(self):
        raise OSError("no build info")

    def storage(self, path):
        return {"friendlyName": "Disk 0", "logicalSectorSize": "512"}


class BrokenStorageProfile(StaticProfile):
    def storage(self, path):
        raise subprocess.CalledProcessError(1, ["powershell"])


def test_system_facts_keep_every_key():
    facts = collect_system_facts(StaticProfile())
    assert facts == {
        "processor": "Test CPU",
        "totalMemory": "1024",
        "os": "TestOS",
        "osBuild": None,
    }


def test_storage_facts_fill_missing_keys(tmp_path):
    facts = collect_storage_facts(StaticProfile(), str(tmp_path))
    assert list(facts) == list(sysinfo.STORAGE_KEYS)
    assert facts["friendlyName"] == "Disk 0"
    assert facts["powerProtected"] is None


def test_storage_failure_is_absent(tmp_path):
    assert collect_storage_facts(BrokenStorageProfile(), str(tmp_path)) is None


def test_generic_profile_has_no_storage(tmp_path):
    assert collect_storage_facts(HostProfile(), str(tmp_path)) is None


@pytest.mark.parametrize(
    "system, cls",
    [("Linux", LinuxProfile), ("Windows", WindowsProfile), ("Darwin", DarwinProfile), ("Plan9", HostProfile)],
)
def test_get_profile(system, cls):
    assert type(get_profile(system)) is cls


def test_generic_memory_is_positive():
    assert int(HostProfile().total_memory()) > 0


def test_windows_storage_parses_powershell_json(monkeypatch):
    payload = (
        '{"FriendlyName":"Samsung SSD 980","LogicalSectorSize":512,'
        '"PhysicalSectorSize":4096,"IsDeviceCacheEnabled":true,"IsPowerProtected":null}'
    )
    scripts = []

    def fake_powershell(script):
        scripts.append(script)
        return payload

    monkeypatch.setattr(sysinfo, "_powershell", fake_powershell)
    monkeypatch.setattr(sysinfo, "_drive_letter", lambda path: "D")

    facts = WindowsProfile().storage("D:\\bench\\fbbench.fdb")

    assert "-DriveLetter D" in scripts[0]
    assert facts == {
        "friendlyName": "Samsung SSD 980",
        "logicalSectorSize": "512",
        "physicalSectorSize": "4096",
        "deviceCacheEnabled": "True",
        "powerProtected": None,
    }


def test_linux_storage_reads_sysfs(monkeypatch):
    values = {
        "/sys/block/nvme0n1/device/model": "Samsung SSD 980 PRO",
        "/sys/block/nvme0n1/queue/logical_block_size": "512",
        "/sys/block/nvme0n1/queue/physical_block_size": "4096",
        "/sys/block/nvme0n1/queue/write_cache": "write back",
    }
    monkeypatch.setattr(sysinfo, "_device_for_path", lambda path: "/dev/nvme0n1p2")
    monkeypatch.setattr(sysinfo, "_linux_parent_disk", lambda name: "nvme0n1")
    monkeypatch.setattr(sysinfo, "_read_sys", values.get)

    facts = LinuxProfile().storage("/data/fbbench.fdb")

    assert facts == {
        "friendlyName": "Samsung SSD 980 PRO",
        "logicalSectorSize": "512",
        "physicalSectorSize": "4096",
        "deviceCacheEnabled": "True",
        "powerProtected": None,
    }


def test_linux_storage_without_block_device(monkeypatch):
    monkeypatch.setattr(sysinfo, "_device_for_path", lambda path: "tmpfs")
    assert LinuxProfile().storage("/tmp/fbbench.fdb") is None


Partition = collections.namedtuple("Partition", "device mountpoint")


def _partitions(*pairs):
    return [Partition(device, mount) for device, mount in pairs]


def test_device_for_path_picks_longest_mount(monkeypatch, tmp_path):
    tmp_path = tmp_path.resolve()
    data = tmp_path / "data"
    data.mkdir()
    (tmp_path / "database").mkdir()
    parts = _partitions(("/dev/sda1", "/"), ("/dev/nvme0n1p2", str(data)))
    monkeypatch.setattr(sysinfo.psutil, "disk_partitions", lambda all=False: parts)

    assert sysinfo._device_for_path(str(data / "fbbench.fdb")) == "/dev/nvme0n1p2"
    assert sysinfo._device_for_path(str(data)) == "/dev/nvme0n1p2"
    # sibling whose name shares the mount prefix stays on the root device
    assert sysinfo._device_for_path(str(tmp_path / "database" / "fbbench.fdb")) == "/dev/sda1"


def test_device_for_path_without_match(monkeypatch, tmp_path):
    monkeypatch.setattr(
        sysinfo.psutil, "disk_partitions", lambda all=False: _partitions(("/dev/sdb1", "/nowhere"))
    )
    assert sysinfo._device_for_path(str(tmp_path / "fbbench.fdb")) is None


@pytest.fixture
def fake_sysfs(monkeypatch, tmp_path):
    devices = tmp_path / "devices" / "nvme0" / "nvme0n1"
    (devices / "nvme0n1p2").mkdir(parents=True)
    (devices / "nvme0n1p2" / "partition").write_text("2\n")
    class_block = tmp_path / "class" / "block"
    class_block.mkdir(parents=True)
    (class_block / "nvme0n1").symlink_to(devices)
    (class_block / "nvme0n1p2").symlink_to(devices / "nvme0n1p2")
    monkeypatch.setattr(sysinfo, "SYS_CLASS_BLOCK", str(class_block))
    return class_block


@pytest.mark.skipif(sysinfo.os.name == "nt", reason="needs symlinks")
def test_partition_resolves_to_parent_disk(fake_sysfs):
    assert sysinfo._linux_parent_disk("nvme0n1p2") == "nvme0n1"
    assert sysinfo._linux_parent_disk("nvme0n1") == "nvme0n1"
    assert sysinfo._linux_parent_disk("sdz9") is None


@pytest.mark.skipif(sysinfo.os.name == "nt", reason="needs symlinks")
def test_linux_storage_from_mount_to_disk(monkeypatch, tmp_path, fake_sysfs):
    tmp_path = tmp_path.resolve()
    data = tmp_path / "data"
    data.mkdir()
    parts = _partitions(("/dev/sda1", "/"), ("/dev/nvme0n1p2", str(data)))
    monkeypatch.setattr(sysinfo.psutil, "disk_partitions", lambda all=False: parts)
    reads = []

    def fake_read(path):
        reads.append(path)
        return {"logical_block_size": "512", "write_cache": "write through"}.get(
            sysinfo.os.path.basename(path)
        )

    monkeypatch.setattr(sysinfo, "_read_sys", fake_read)

    facts = LinuxProfile().storage(str(data / "fbbench.fdb"))

    assert facts["friendlyName"] == "nvme0n1"
    assert facts["logicalSectorSize"] == "512"
    assert facts["physicalSectorSize"] is None
    assert facts["deviceCacheEnabled"] == "False"
    assert all("/sys/block/nvme0n1/" in path for path in reads)
