"""Parser for Gemini status records (record type 3).

A status record reports the sonar's health at the time of the
surrounding images: firmware versions, board temperatures, link
statistics and network settings.  The body is 218 bytes.
"""

from __future__ import annotations

from dataclasses import dataclass

from glfreader.cursor import ByteCursor
from glfreader.records import RECORD_STATUS, CIHeader, RecordParser

STATUS_BODY_SIZE = 218


@dataclass(frozen=True)
class StatusRecord:
    """Sonar health snapshot."""

    ci: CIHeader
    bf_version: int
    da_version: int
    flags: int
    device_id: int
    xd_selected: int
    vga_t1: float
    vga_t2: float
    vga_t3: float
    vga_t4: float
    psu_t: float
    die_t: float
    tx_t: float
    afe0_top_temp: float
    afe0_bot_temp: float
    afe1_top_temp: float
    afe1_bot_temp: float
    afe2_top_temp: float
    afe2_bot_temp: float
    afe3_top_temp: float
    afe3_bot_temp: float
    link_type: int
    uplink_speed: float
    downlink_speed: float
    link_quality: int
    packet_count: int
    recv_error: int
    resent_packet_count: int
    dropped_packet_count: int
    unknown_packet_count: int
    lost_line_count: int
    general_count: int
    sonar_alt_ip: int
    surface_ip: int
    subnet_mask: bytes
    mac_addr: bytes
    boot_sts_register: int
    boot_sts_register_da: int
    fpga_time: int
    dip_switch: int
    shutdown_status: int
    net_adap_found: bool

    @property
    def mac_address(self) -> str:
        return ":".join(f"{b:02x}" for b in self.mac_addr)


class StatusRecordParser(RecordParser):
    name = "status"
    record_type = RECORD_STATUS

    def _parse_body(self, cursor: ByteCursor, ci: CIHeader, index: int,
                    start: int) -> StatusRecord:
        r = cursor
        bf_version, da_version, flags, device_id = r.read_array("H", 4)
        xd_selected = r.read_u8()
        r.skip(1)
        vga = r.read_array("d", 4)
        psu_t, die_t, tx_t = r.read_array("d", 3)
        afe = r.read_array("d", 8)
        link_type = r.read_u16()
        uplink_speed = r.read_f64()
        downlink_speed = r.read_f64()
        link_quality = r.read_u16()
        counters = r.read_array("I", 9)
        subnet_mask = bytes(r.read_bytes(4))
        mac_addr = bytes(r.read_bytes(6))
        boot_sts_register = r.read_u32()
        boot_sts_register_da = r.read_u32()
        fpga_time = r.read_u64()
        dip_switch = r.read_u16()
        shutdown_status = r.read_u16()
        net_adap_found = r.read_u8() != 0
        r.skip(1)

        return StatusRecord(
            ci=ci,
            bf_version=bf_version,
            da_version=da_version,
            flags=flags,
            device_id=device_id,
            xd_selected=xd_selected,
            vga_t1=vga[0], vga_t2=vga[1], vga_t3=vga[2], vga_t4=vga[3],
            psu_t=psu_t, die_t=die_t, tx_t=tx_t,
            afe0_top_temp=afe[0], afe0_bot_temp=afe[1],
            afe1_top_temp=afe[2], afe1_bot_temp=afe[3],
            afe2_top_temp=afe[4], afe2_bot_temp=afe[5],
            afe3_top_temp=afe[6], afe3_bot_temp=afe[7],
            link_type=link_type,
            uplink_speed=uplink_speed,
            downlink_speed=downlink_speed,
            link_quality=link_quality,
            packet_count=counters[0],
            recv_error=counters[1],
            resent_packet_count=counters[2],
            dropped_packet_count=counters[3],
            unknown_packet_count=counters[4],
            lost_line_count=counters[5],
            general_count=counters[6],
            sonar_alt_ip=counters[7],
            surface_ip=counters[8],
            subnet_mask=subnet_mask,
            mac_addr=mac_addr,
            boot_sts_register=boot_sts_register,
            boot_sts_register_da=boot_sts_register_da,
            fpga_time=fpga_time,
            dip_switch=dip_switch,
            shutdown_status=shutdown_status,
            net_adap_found=net_adap_found,
        )
