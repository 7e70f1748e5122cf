import pytest

from webpify.errors import ConfigurationError
from webpify.settings import ConvertSettings, parse_min_size, validate_settings
from webpify.sizes import ByteSize


@pytest.mark.parametrize(
    "text, expected",
    [
        ("10KB", 10 * 1024),
        ("10 kb", 10 * 1024),
        ("10k", 10 * 1024),
        ("512", 512),
        ("512B", 512),
        ("1MB", 1024 ** 2),
        ("2GiB", 2 * 1024 ** 3),
        ("  3 MiB ", 3 * 1024 ** 2),
    ],
)
def test_parse(text, expected):
    assert ByteSize.parse(text) == expected


@pytest.mark.parametrize("text", ["", "ten", "10XB", "1.5MB", "-1KB", "KB"])
def test_parse_rejects_garbage(text):
    with pytest.raises(ValueError):
        ByteSize.parse(text)


def test_str_is_exact_and_compact():
    assert str(ByteSize(10240)) == "10KB"
    assert str(ByteSize(1024 ** 2)) == "1MB"
    assert str(ByteSize(1000)) == "1000B"
    assert str(ByteSize(0)) == "0B"
    assert str(ByteSize.parse(str(ByteSize(5 * 1024 ** 3)))) == "5GB"


def test_human_readable():
    assert ByteSize(500).human_readable() == "500 B"
    assert ByteSize(1536).human_readable() == "1.5 KB"
    assert ByteSize(51200).human_readable() == "50.0 KB"
    assert ByteSize(3 * 1024 ** 2).human_readable() == "3.0 MB"


def test_compares_as_int():
    assert ByteSize(5 * 1024) < ByteSize.parse("10KB")
    assert ByteSize(10240).bytes == 10240


def test_parse_min_size_wraps_errors():
    assert parse_min_size("10KB") == 10240
    assert parse_min_size(42) == 42
    with pytest.raises(ConfigurationError, match="not a valid file size"):
        parse_min_size("lots")


def test_default_min_size_is_10kb():
    assert ConvertSettings().min_size == 10 * 1024


def test_validate_requires_dir_and_quality(tmp_path):
    with pytest.raises(ConfigurationError):
        validate_settings(ConvertSettings(quality=80))
    with pytest.raises(ConfigurationError):
        validate_settings(ConvertSettings(target_dir=tmp_path, quality=0))

    s = ConvertSettings(target_dir=tmp_path, quality=80)
    assert validate_settings(s) is s


def test_validate_dry_run_needs_no_quality():
    validate_settings(ConvertSettings(dry_run=True))


def test_validate_worker_count(tmp_path):
    with pytest.raises(ConfigurationError, match="worker count"):
        validate_settings(ConvertSettings(target_dir=tmp_path, quality=80, workers=0))
