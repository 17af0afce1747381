import pytest

from rvtool.repository_urls import (
    OsKind,
    SystemInfo,
    TarballUrls,
    get_archive_tarball_path,
    get_binary_path,
    get_distro_name,
    get_package_file_urls,
    get_source_path,
    get_tarball_urls,
)

PPM_URL = "https://packagemanager.posit.co/cran/latest"
TEST_FILE_NAME = ["test-file"]

UBUNTU = SystemInfo(OsKind.LINUX, distro="ubuntu", arch="x86_64", codename="jammy", version="22.04")
WINDOWS = SystemInfo(OsKind.WINDOWS, arch="x86_64")
MAC_X86 = SystemInfo(OsKind.MACOS, arch="x86_64")
MAC_ARM = SystemInfo(OsKind.MACOS, arch="arm64")


def test_source_url():
    assert get_source_path(PPM_URL, TEST_FILE_NAME) == f"{PPM_URL}/src/contrib/test-file"


def test_binary_35_url():
    assert get_binary_path(PPM_URL, TEST_FILE_NAME, (3, 5), UBUNTU) is None


def test_windows_url():
    assert (
        get_binary_path(PPM_URL, TEST_FILE_NAME, (4, 4), WINDOWS)
        == f"{PPM_URL}/bin/windows/contrib/4.4/test-file"
    )


def test_mac_x86_64_r41_url():
    assert (
        get_binary_path(PPM_URL, TEST_FILE_NAME, (4, 1), MAC_X86)
        == f"{PPM_URL}/bin/macosx/contrib/4.1/test-file"
    )


def test_mac_arm64_r41_url():
    assert (
        get_binary_path(PPM_URL, TEST_FILE_NAME, (4, 1), MAC_ARM)
        == f"{PPM_URL}/bin/macosx/big-sur-arm64/contrib/4.1/test-file"
    )


def test_mac_x86_64_r44_url():
    assert (
        get_binary_path(PPM_URL, TEST_FILE_NAME, (4, 4), MAC_X86)
        == f"{PPM_URL}/bin/macosx/big-sur-x86_64/contrib/4.4/test-file"
    )


def test_mac_arm64_r44_url():
    assert (
        get_binary_path(PPM_URL, TEST_FILE_NAME, (4, 4), MAC_ARM)
        == f"{PPM_URL}/bin/macosx/big-sur-arm64/contrib/4.4/test-file"
    )


def test_mac_without_arch_has_no_binary():
    sysinfo = SystemInfo(OsKind.MACOS)
    assert get_binary_path(PPM_URL, TEST_FILE_NAME, (4, 4), sysinfo) is None


def test_linux_binaries_url():
    assert (
        get_binary_path(PPM_URL, TEST_FILE_NAME, (4, 2), UBUNTU)
        == "https://packagemanager.posit.co/cran/__linux__/jammy/latest/src/contrib/test-file"
        "?r_version=4.2&arch=x86_64"
    )


def test_linux_url_already_linux():
    url = "https://packagemanager.posit.co/cran/__linux__/jammy/latest"
    assert (
        get_binary_path(url, TEST_FILE_NAME, (4, 4), UBUNTU)
        == f"{url}/src/contrib/test-file?r_version=4.4&arch=x86_64"
    )


def test_linux_url_without_arch():
    sysinfo = SystemInfo(OsKind.LINUX, distro="debian", codename="bookworm", version="12")
    assert (
        get_binary_path(PPM_URL, TEST_FILE_NAME, (4, 4), sysinfo)
        == "https://packagemanager.posit.co/cran/__linux__/bookworm/latest/src/contrib/test-file"
        "?r_version=4.4"
    )


def test_linux_unknown_distro_has_no_binary():
    sysinfo = SystemInfo(OsKind.LINUX, distro="arch", arch="x86_64", version="1.0")
    assert get_binary_path(PPM_URL, TEST_FILE_NAME, (4, 4), sysinfo) is None


def test_other_os_has_no_binary():
    sysinfo = SystemInfo(OsKind.OTHER, arch="x86_64")
    assert get_binary_path(PPM_URL, TEST_FILE_NAME, (4, 4), sysinfo) is None


def test_archive_url():
    assert (
        get_archive_tarball_path(PPM_URL, "name", "version")
        == f"{PPM_URL}/src/contrib/Archive/name/name_version.tar.gz"
    )


@pytest.mark.parametrize(
    ("distro", "version", "expected"),
    [
        ("centos", "7", "centos7"),
        ("centos", "6", None),
        ("rocky", "9.2", "rhel9"),
        ("rocky", "8.8", None),
        ("opensuse", "15.5", "opensuse155"),
        ("suse", "15.6", "opensuse156"),
        ("opensuse", "15.4", None),
        ("redhat", "9.1", "rhel9"),
        ("redhat", "8.6", "centos8"),
        ("redhat", "7", "centos7"),
        ("redhat", "6", None),
        ("gentoo", "2.14", None),
    ],
)
def test_distro_names(distro, version, expected):
    sysinfo = SystemInfo(OsKind.LINUX, distro=distro, arch="x86_64", version=version)
    assert get_distro_name(sysinfo, distro) == expected


def test_distro_name_uses_codename_for_ubuntu():
    assert get_distro_name(UBUNTU, "ubuntu") == "jammy"


def test_distro_name_needs_numeric_version():
    sysinfo = SystemInfo(OsKind.LINUX, distro="centos", version="rolling")
    assert get_distro_name(sysinfo, "centos") is None


def test_source_path_rejects_relative_url():
    with pytest.raises(ValueError):
        get_source_path("mailto:someone", TEST_FILE_NAME)


def test_tarball_urls_windows():
    urls = get_tarball_urls(PPM_URL, "dplyr", "1.1.4", None, (4, 4), WINDOWS)
    assert urls == TarballUrls(
        source=f"{PPM_URL}/src/contrib/dplyr_1.1.4.tar.gz",
        binary=f"{PPM_URL}/bin/windows/contrib/4.4/dplyr_1.1.4.zip",
        archive=f"{PPM_URL}/src/contrib/Archive/dplyr/dplyr_1.1.4.tar.gz",
    )


def test_tarball_urls_with_path_on_mac():
    urls = get_tarball_urls(PPM_URL, "Matrix", "1.7-0", "4.4.0/Recommended", (4, 4), MAC_ARM)
    assert urls.source == f"{PPM_URL}/src/contrib/4.4.0/Recommended/Matrix_1.7-0.tar.gz"
    assert (
        urls.binary
        == f"{PPM_URL}/bin/macosx/big-sur-arm64/contrib/4.4/4.4.0/Recommended/Matrix_1.7-0.tgz"
    )
    assert urls.archive == f"{PPM_URL}/src/contrib/Archive/Matrix/Matrix_1.7-0.tar.gz"


def test_tarball_urls_linux_binary_extension():
    urls = get_tarball_urls(PPM_URL, "R6", "2.5.1", None, (4, 4), UBUNTU)
    assert urls.binary == (
        "https://packagemanager.posit.co/cran/__linux__/jammy/latest/src/contrib/R6_2.5.1.tar.gz"
        "?r_version=4.4&arch=x86_64"
    )


def test_package_file_urls():
    source, binary = get_package_file_urls(PPM_URL, (4, 4), UBUNTU)
    assert source == f"{PPM_URL}/src/contrib/PACKAGES"
    assert binary == (
        "https://packagemanager.posit.co/cran/__linux__/jammy/latest/src/contrib/PACKAGES"
        "?r_version=4.4&arch=x86_64"
    )


def test_package_file_urls_old_r_has_no_binary():
    source, binary = get_package_file_urls(PPM_URL, (3, 5), WINDOWS)
    assert source == f"{PPM_URL}/src/contrib/PACKAGES"
    assert binary is None


@pytest.mark.parametrize(
    ("os_kind", "extension"),
    [(OsKind.WINDOWS, "zip"), (OsKind.MACOS, "tgz"), (OsKind.LINUX, "tar.gz")],
)
def test_tarball_extension(os_kind, extension):
    assert SystemInfo(os_kind).tarball_extension == extension


def test_semantic_version():
    assert UBUNTU.semantic_version == (22, 4, 0)
    assert WINDOWS.semantic_version is None