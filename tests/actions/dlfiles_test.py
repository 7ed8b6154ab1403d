import pathlib

import pytest
import requests
from pytest_mock import MockerFixture

from provisioner.actions.dlfiles import FileDownloader
from provisioner.cexceptions import FileFetchFailedError
from provisioner.download_manager import DownloadManager


@pytest.fixture(name="dlmgr")
def fixture_dlmgr(mocker: MockerFixture, settings):
    return mocker.MagicMock(spec=DownloadManager(settings))


@pytest.fixture(name="downloader")
def fixture_downloader(resolver, dlmgr):
    return FileDownloader(resolver, dlmgr)


@pytest.fixture(name="files_bootenv")
def fixture_files_bootenv(create_bootenv):
    return create_bootenv(
        OS={
            "Name": "ubuntu-16.04",
            "Files": [
                {"Name": "netboot/linux", "URL": "http://example.com/linux"},
                {"Name": "netboot/initrd.gz", "URL": "http://example.com/initrd.gz", "ValidationMethod": "exists"},
            ],
        }
    )


def _fake_download(url: str, dest: str) -> None:
    pathlib.Path(dest).parent.mkdir(parents=True, exist_ok=True)
    pathlib.Path(dest).write_text(url, encoding="UTF-8")


def test_run_downloads_missing_files(downloader, dlmgr, files_bootenv, file_root: pathlib.Path):
    # Arrange
    dlmgr.download_file.side_effect = _fake_download

    # Act
    result = downloader.run(files_bootenv)

    # Assert
    assert result == ["netboot/linux", "netboot/initrd.gz"]
    assert (file_root / "ubuntu-16.04/install/netboot/linux").read_text() == "http://example.com/linux"
    assert dlmgr.download_file.call_count == 2


def test_run_skips_valid_files(downloader, dlmgr, files_bootenv, file_root: pathlib.Path):
    # Arrange
    for name in ("netboot/linux", "netboot/initrd.gz"):
        target = file_root / "ubuntu-16.04" / "install" / name
        target.parent.mkdir(parents=True, exist_ok=True)
        target.touch()

    # Act
    result = downloader.run(files_bootenv)

    # Assert
    assert result == []
    dlmgr.download_file.assert_not_called()


def test_run_still_invalid(downloader, dlmgr, files_bootenv):
    # Arrange
    dlmgr.download_file.return_value = None

    # Act & Assert
    with pytest.raises(FileFetchFailedError) as excinfo:
        downloader.run(files_bootenv)
    assert excinfo.value.name == "netboot/linux"


@pytest.mark.parametrize(
    "error",
    [requests.ConnectionError("connection refused"), PermissionError(13, "Permission denied")],
)
def test_run_download_fails(downloader, dlmgr, files_bootenv, error):
    # Arrange
    dlmgr.download_file.side_effect = error

    # Act & Assert
    with pytest.raises(FileFetchFailedError) as excinfo:
        downloader.run(files_bootenv)
    assert excinfo.value.detail is error


def test_validate_file_unknown_method(downloader, create_bootenv, file_root: pathlib.Path):
    # Arrange
    bootenv = create_bootenv(
        OS={"Name": "ubuntu-16.04", "Files": [{"Name": "linux", "ValidationMethod": "sha256"}]}
    )
    target = file_root / "ubuntu-16.04" / "install" / "linux"
    target.parent.mkdir(parents=True)
    target.touch()

    # Act
    result = downloader.validate_file(bootenv, bootenv.os.files[0])

    # Assert
    assert result
