import os
import pathlib

import pytest
from pytest_mock import MockerFixture

from provisioner.bootgen import BootGen
from provisioner.cexceptions import (
    CX,
    MissingParameterError,
    MissingRequiredParamsError,
    TemplateEvaluationError,
)


@pytest.fixture(name="bootgen")
def fixture_bootgen(settings, resolver, templar, loader):
    return BootGen(settings, resolver, templar, loader)


@pytest.fixture(name="pxe_bootenv")
def fixture_pxe_bootenv(create_bootenv, create_template):
    create_template(
        "default-pxelinux.tmpl",
        "DEFAULT install\nLABEL install\n  KERNEL {{ Env.PathFor('tftp', Env.Kernel) }}\n"
        "  APPEND {{ BootParams() }}\n",
    )
    create_template("default-elilo.tmpl", "image={{ Env.PathFor('tftp', Env.Kernel) }}\n")
    create_template("default-ipxe.tmpl", "#!ipxe\nkernel {{ Env.PathFor('network', Env.Kernel) }}\n")
    return create_bootenv(
        Templates=[
            {"Name": "pxelinux", "Path": "pxelinux.cfg/{{.Machine.HexAddress}}", "UUID": "default-pxelinux.tmpl"},
            {"Name": "elilo", "Path": "{{.Machine.HexAddress}}.conf", "UUID": "default-elilo.tmpl"},
            {"Name": "ipxe", "Path": "{{.Machine.Address}}.ipxe", "UUID": "default-ipxe.tmpl"},
        ],
        Kernel="install/netboot/ubuntu-installer/amd64/linux",
        BootParams="auto=true url={{.Machine.Url}}/seed",
        RequiredParams=["dns-domain"],
    )


def _tree(root: pathlib.Path):
    return sorted(str(x.relative_to(root)) for x in root.rglob("*") if x.is_file())


def test_render_end_to_end(bootgen, create_bootenv, create_machine, create_template, file_root):
    # Arrange
    create_template("ttl.tmpl", "TTL 0")
    bootenv = create_bootenv(
        RequiredParams=["dns-domain"],
        Templates=[{"Name": "ipxe", "Path": "{{.Machine.HexAddress}}.conf", "UUID": "ttl.tmpl"}],
    )
    machine = create_machine(Params={"dns-domain": "example.com"})

    # Act
    result = bootgen.render_templates(bootenv, machine)

    # Assert
    expected = file_root / "C0A87C51.conf"
    assert result == [str(expected)]
    assert expected.read_text(encoding="UTF-8") == "TTL 0"


def test_render_templates(bootgen, pxe_bootenv, create_machine, file_root):
    # Arrange
    machine = create_machine()

    # Act
    result = bootgen.render_templates(pxe_bootenv, machine)

    # Assert
    assert _tree(file_root) == ["192.168.124.81.ipxe", "C0A87C51.conf", "pxelinux.cfg/C0A87C51"]
    assert len(result) == 3
    assert (file_root / "pxelinux.cfg" / "C0A87C51").read_text() == (
        "DEFAULT install\nLABEL install\n"
        "  KERNEL ubuntu-16.04/install/install/netboot/ubuntu-installer/amd64/linux\n"
        "  APPEND auto=true url=http://192.168.124.10:8091/machines/7b7ac5f4-61a6-4f2b-a3de-3ea1d1e3e6c4/seed\n"
    )
    assert (file_root / "192.168.124.81.ipxe").read_text() == (
        "#!ipxe\nkernel http://192.168.124.10:8091/ubuntu-16.04/install/"
        "install/netboot/ubuntu-installer/amd64/linux\n"
    )


def test_render_is_idempotent(bootgen, pxe_bootenv, create_machine, file_root):
    # Arrange
    machine = create_machine()
    bootgen.render_templates(pxe_bootenv, machine)
    first = {x: (file_root / x).read_bytes() for x in _tree(file_root)}

    # Act
    bootgen.render_templates(pxe_bootenv, machine)
    second = {x: (file_root / x).read_bytes() for x in _tree(file_root)}

    # Assert
    assert first == second


def test_render_missing_required_params(bootgen, pxe_bootenv, create_machine, file_root):
    # Arrange
    pxe_bootenv.required_params = ["dns-domain", "ntp_servers"]
    machine = create_machine(Params={})

    # Act & Assert
    with pytest.raises(MissingRequiredParamsError) as excinfo:
        bootgen.render_templates(pxe_bootenv, machine)
    assert excinfo.value.missing == ["dns-domain", "ntp_servers"]
    assert _tree(file_root) == []


def test_render_failure_removes_only_the_failed_file(
    bootgen, pxe_bootenv, create_machine, create_template, file_root
):
    # Arrange
    machine = create_machine()
    bootgen.render_templates(pxe_bootenv, machine)
    create_template("default-elilo.tmpl", "image={{ Param('ntp_servers') }}\n")
    pxe_bootenv.parse_templates(bootgen.templar, bootgen.loader, force=True)

    # Act
    with pytest.raises(MissingParameterError):
        bootgen.render_templates(pxe_bootenv, machine)

    # Assert
    assert not (file_root / "C0A87C51.conf").exists()
    assert (file_root / "pxelinux.cfg" / "C0A87C51").exists()
    assert (file_root / "192.168.124.81.ipxe").exists()


def test_render_undefined_variable_leaves_no_file(
    bootgen, create_bootenv, create_machine, create_template, file_root
):
    # Arrange
    create_template("broken.tmpl", "{{ Machine.Missing }}")
    bootenv = create_bootenv(
        Templates=[{"Name": "ipxe", "Path": "{{.Machine.HexAddress}}.ipxe", "UUID": "broken.tmpl"}]
    )

    # Act & Assert
    with pytest.raises(TemplateEvaluationError):
        bootgen.render_templates(bootenv, create_machine())
    assert _tree(file_root) == []


def test_render_path_failure_writes_nothing(
    bootgen, create_bootenv, create_machine, create_template, file_root
):
    # Arrange
    create_template("ok.tmpl", "ok")
    bootenv = create_bootenv(
        Templates=[
            {"Name": "pxelinux", "Path": "pxelinux.cfg/{{.Machine.HexAddress}}", "UUID": "ok.tmpl"},
            {"Name": "ipxe", "Path": "{{ Param('ntp_servers') }}.ipxe", "UUID": "ok.tmpl"},
        ]
    )

    # Act & Assert
    with pytest.raises(MissingParameterError):
        bootgen.render_templates(bootenv, create_machine())
    assert _tree(file_root) == []


@pytest.mark.parametrize("path", ["../../etc/{{.Machine.HexAddress}}", "", "  "])
def test_render_path_outside_file_root(bootgen, create_bootenv, create_machine, create_template, path):
    # Arrange
    create_template("ok.tmpl", "ok")
    bootenv = create_bootenv(Templates=[{"Name": "ipxe", "Path": path or "{{ '' }}", "UUID": "ok.tmpl"}])

    # Act & Assert
    with pytest.raises(CX):
        bootgen.render_templates(bootenv, create_machine())


def test_render_absolute_path_stays_below_file_root(
    bootgen, create_bootenv, create_machine, create_template, file_root
):
    # Arrange
    create_template("ok.tmpl", "ok")
    bootenv = create_bootenv(
        Templates=[{"Name": "ipxe", "Path": "/ipxe/{{.Machine.HexAddress}}", "UUID": "ok.tmpl"}]
    )

    # Act
    result = bootgen.render_templates(bootenv, create_machine())

    # Assert
    assert result == [str(file_root / "ipxe" / "C0A87C51")]


def test_render_write_error(mocker: MockerFixture, bootgen, pxe_bootenv, create_machine):
    # Arrange
    mocker.patch("os.fsync", side_effect=OSError(28, "No space left on device"))
    mock_rmfile = mocker.patch("provisioner.utils.filesystem_helpers.rmfile")

    # Act & Assert
    with pytest.raises(CX):
        bootgen.render_templates(pxe_bootenv, create_machine())
    mock_rmfile.assert_called_once()


def test_render_paths_are_per_machine(bootgen, pxe_bootenv, create_machine, file_root):
    # Arrange
    pxe_bootenv.parse_templates(bootgen.templar, bootgen.loader)
    first = create_machine()
    second = create_machine(Name="m2.example.com", Address="10.0.0.1")

    # Act
    first_targets = bootgen.render_paths(pxe_bootenv, first)
    second_targets = bootgen.render_paths(pxe_bootenv, second)

    # Assert
    assert [x.path for x in first_targets][0] == os.path.join(str(file_root), "pxelinux.cfg", "C0A87C51")
    assert [x.path for x in second_targets][0] == os.path.join(str(file_root), "pxelinux.cfg", "0A000001")
    assert first_targets[0].template is second_targets[0].template


def test_delete_rendered_templates(bootgen, pxe_bootenv, create_machine, file_root):
    # Arrange
    machine = create_machine()
    written = bootgen.render_templates(pxe_bootenv, machine)

    # Act
    result = bootgen.delete_rendered_templates(pxe_bootenv, machine)

    # Assert
    assert sorted(result) == sorted(written)
    assert _tree(file_root) == []


def test_delete_rendered_templates_skips_unresolvable(
    bootgen, create_bootenv, create_machine, create_template, file_root
):
    # Arrange
    create_template("ok.tmpl", "ok")
    bootenv = create_bootenv(
        Templates=[
            {"Name": "pxelinux", "Path": "{{ Param('ntp_servers') }}", "UUID": "ok.tmpl"},
            {"Name": "ipxe", "Path": "{{.Machine.HexAddress}}.ipxe", "UUID": "ok.tmpl"},
        ]
    )
    (file_root / "C0A87C51.ipxe").write_text("ok")

    # Act
    result = bootgen.delete_rendered_templates(bootenv, create_machine())

    # Assert
    assert result == [str(file_root / "C0A87C51.ipxe")]
    assert _tree(file_root) == []


def test_delete_rendered_templates_skips_unknown_protocol(
    bootgen, create_bootenv, create_machine, create_template, file_root
):
    # Arrange
    create_template("ok.tmpl", "ok")
    bootenv = create_bootenv(
        Templates=[{"Name": "ipxe", "Path": "{{ Env.PathFor('http', 'x') }}.ipxe", "UUID": "ok.tmpl"}]
    )

    # Act
    result = bootgen.delete_rendered_templates(bootenv, create_machine())

    # Assert
    assert result == []


@pytest.mark.parametrize(
    "content",
    ["append {{.BootParams}}\n", "append {{ BootParams }}\n", "append {{ BootParams() }}\n"],
)
def test_render_boot_params_without_call(
    bootgen, create_bootenv, create_machine, create_template, file_root, content
):
    # Arrange
    create_template("append.tmpl", content)
    bootenv = create_bootenv(
        Templates=[{"Name": "pxelinux", "Path": "{{.Machine.HexAddress}}", "UUID": "append.tmpl"}],
        BootParams="domain={{ Param('dns-domain') }}",
    )

    # Act
    bootgen.render_templates(bootenv, create_machine())

    # Assert
    assert (file_root / "C0A87C51").read_text() == "append domain=example.com\n"


def test_render_helper_missing_arguments(
    bootgen, create_bootenv, create_machine, create_template, file_root
):
    # Arrange
    create_template("url.tmpl", "host {{.ParseUrl}}\n")
    bootenv = create_bootenv(
        Templates=[{"Name": "pxelinux", "Path": "{{.Machine.HexAddress}}", "UUID": "url.tmpl"}]
    )

    # Act & Assert
    with pytest.raises(TemplateEvaluationError):
        bootgen.render_templates(bootenv, create_machine())
    assert _tree(file_root) == []
