"""Tests for GCE archive conversion."""

import io
import tarfile

import pytest

from auroraboot.convert.common import GIB, MIB
from auroraboot.convert.gce import PaddedReader, gce_size, raw_to_gce
from auroraboot.exceptions import FormatInvariantError


class TestGceSize:
    """Test GCE padding size."""
    
    @pytest.mark.parametrize("size,expected", [
        (512, GIB),
        (GIB - 512, GIB),
        (GIB, GIB),
        (GIB + 512, 2 * GIB),
        (5 * GIB + 3 * MIB, 6 * GIB),
    ])
    def test_rounds_up_to_gib(self, size, expected):
        assert gce_size(size) == expected


class TestPaddedReader:
    """Test zero padding reader."""
    
    def test_pads_with_zeros(self):
        reader = PaddedReader(io.BytesIO(b"abc"), 8)
        
        assert reader.read(5) == b"abc\x00\x00"
        assert reader.read(10) == b"\x00\x00\x00"
        assert reader.read(1) == b""
        
    def test_read_all(self):
        reader = PaddedReader(io.BytesIO(b"abc"), 6)
        
        assert reader.read() == b"abc\x00\x00\x00"
        
    def test_truncates_longer_source(self):
        reader = PaddedReader(io.BytesIO(b"abcdef"), 4)
        
        assert reader.read() == b"abcd"


class TestRawToGce:
    """Test raw to GCE conversion."""
    
    def test_single_padded_entry(self, make_raw, tmp_path):
        """Test the archive holds only disk.raw, padded to a whole GiB."""
        raw = make_raw(2 * MIB, "kairos.raw")
        original = raw.read_bytes()
        
        archive = raw_to_gce(raw, tmp_path, "kairos", compresslevel=1)
        
        assert archive == tmp_path / "kairos.raw.gce.tar.gz"
        with tarfile.open(archive, "r:gz") as tar:
            members = tar.getmembers()
            assert [m.name for m in members] == ["disk.raw"]
            assert members[0].size == GIB
            assert members[0].size % GIB == 0
            
            data = tar.extractfile(members[0])
            assert data.read(len(original)) == original
            assert data.read(4096) == b"\x00" * 4096
            
        assert raw.read_bytes() == original
        
    def test_missing_precursor(self, tmp_path):
        with pytest.raises(FormatInvariantError):
            raw_to_gce(tmp_path / "missing.raw", tmp_path, "missing")
            
    def test_unaligned_precursor(self, make_raw, tmp_path):
        with pytest.raises(FormatInvariantError):
            raw_to_gce(make_raw(1000), tmp_path, "kairos")
