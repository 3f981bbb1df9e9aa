"""Shared fixtures for the test suite."""

from pathlib import Path

import pytest

from urdf_kinematics.io import parse_urdf

FIXTURES = Path(__file__).parent / "fixtures"


@pytest.fixture
def arm_urdf_path():
    return FIXTURES / "test_arm.urdf"


@pytest.fixture
def arm_urdf(arm_urdf_path):
    return arm_urdf_path.read_text()


@pytest.fixture
def arm_model(arm_urdf):
    return parse_urdf(arm_urdf)


def make_urdf(body: str, name: str = "test_robot") -> str:
    """Wrap link/joint elements in a <robot> document."""
    return f'<robot name="{name}">{body}</robot>'


def make_chain_urdf(length: int) -> str:
    """A serial chain of ``length`` links joined by fixed joints 1 cm apart along z."""
    links = "".join(f'<link name="l{i}"/>' for i in range(length))
    joints = "".join(
        f'<joint name="j{i}" type="fixed"><origin xyz="0 0 0.01"/>'
        f'<parent link="l{i}"/><child link="l{i + 1}"/></joint>'
        for i in range(length - 1)
    )
    return make_urdf(links + joints, name="long_chain")
