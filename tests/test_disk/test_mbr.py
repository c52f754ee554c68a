"""Tests for the MBR partition table emitter."""

import struct

import pytest

from auroraboot.disk.mbr import (
    MBRPartition,
    build_mbr,
    encode_chs,
    lba_to_chs,
    write_mbr,
)


def entry(record, index):
    offset = 446 + 16 * index
    return record[offset:offset + 16]


class TestBuildMBR:
    """Test MBR construction."""
    
    def test_layout(self):
        """Test signature, disk id and a single bootable entry."""
        record = build_mbr([MBRPartition(2048, 1000, bootable=True)], disk_signature=0xDEADBEEF)
        
        assert len(record) == 512
        assert record[:440] == b"\x00" * 440
        assert struct.unpack("<I", record[440:444])[0] == 0xDEADBEEF
        assert record[510:] == b"\x55\xaa"
        
        first = entry(record, 0)
        assert first[0] == 0x80
        assert first[4] == 0x83
        assert struct.unpack("<II", first[8:16]) == (2048, 1000)
        for index in (1, 2, 3):
            assert entry(record, index) == b"\x00" * 16
            
    def test_non_bootable_partition(self):
        record = build_mbr([MBRPartition(2048, 1000, type=0xEF)], disk_signature=1)
        
        assert entry(record, 0)[0] == 0x00
        assert entry(record, 0)[4] == 0xEF
        
    def test_random_disk_signature(self):
        record = build_mbr([MBRPartition(2048, 1000)])
        
        assert len(record) == 512
        
    @pytest.mark.parametrize("count", [0, 1, 2, 3, 4])
    def test_record_is_one_sector(self, count):
        """Test the record is a single sector for any partition count."""
        partitions = [MBRPartition(2048 * (i + 1), 100) for i in range(count)]
        
        record = build_mbr(partitions, disk_signature=0)
        
        assert len(record) == 512
        assert record[510:] == b"\x55\xaa"
        
    def test_too_many_partitions(self):
        with pytest.raises(ValueError):
            build_mbr([MBRPartition(2048 * (i + 1), 100) for i in range(5)])
            
    def test_multiple_bootable(self):
        with pytest.raises(ValueError):
            build_mbr([MBRPartition(2048, 100, True), MBRPartition(4096, 100, True)])
            
    def test_empty_partition(self):
        with pytest.raises(ValueError):
            build_mbr([MBRPartition(2048, 0)])
            
    def test_partition_beyond_32_bits(self):
        with pytest.raises(ValueError):
            build_mbr([MBRPartition(2048, 0xFFFFFFFF)])


class TestCHS:
    """Test CHS addressing."""
    
    def test_first_partition_start(self):
        assert lba_to_chs(2048) == (0, 32, 33)
        assert encode_chs(2048) == bytes([32, 33, 0])
        
    def test_high_cylinder_bits(self):
        # cylinder 1000 sets the two high bits of the sector byte
        lba = 1000 * 255 * 63
        
        assert lba_to_chs(lba) == (1000, 0, 1)
        assert encode_chs(lba) == bytes([0, 1 | 0xC0, 1000 & 0xFF])
        
    def test_clamped(self):
        assert lba_to_chs(2 ** 31) == (1023, 254, 63)
        assert encode_chs(2 ** 31) == b"\xfe\xff\xff"


def test_write_mbr_preserves_rest_of_image(make_raw):
    image = make_raw(4 * 1024 * 1024)
    with open(image, "r+b") as f:
        f.seek(512)
        f.write(b"DATA")
        
    write_mbr(image, [MBRPartition(2048, 6144, bootable=True)], disk_signature=7)
    
    content = image.read_bytes()
    assert len(content) == 4 * 1024 * 1024
    assert content[510:512] == b"\x55\xaa"
    assert content[512:516] == b"DATA"
