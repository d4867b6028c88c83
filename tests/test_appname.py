#!/usr/bin/env python

# pylint: disable=redefined-outer-name,protected-access

"""AppName tests."""

from time import time
from typing import Dict, Generator, NamedTuple, Optional

import pytest

from aci_push_async import AppName


class TypingGetTestData(NamedTuple):
    # pylint: disable=missing-class-docstring
    labels: Dict[str, str]
    name: str
    object: AppName
    string: str
    version: Optional[str]


def get_test_data() -> Generator[TypingGetTestData, None, None]:
    """Dynamically initializes test data."""
    for slash in ["", "/"]:
        for _name in ["app", "example.com/app", "example.com/ns0/app-name_1.2~x"]:
            name = f"{slash}{_name}"
            for version in ["1.0.0", None]:
                for labels in [{}, {"os": "linux"}, {"arch": "amd64", "os": "linux"}]:
                    string = name
                    if version:
                        string = f"{string}:{version}"
                    for key, value in labels.items():
                        string = f"{string},{key}={value}"
                    yield TypingGetTestData(
                        labels=labels,
                        name=_name,  # Should be normalized to not have a leading slash
                        object=AppName.parse(string),
                        string=string,
                        version=version,
                    )


@pytest.fixture(params=get_test_data())
def app_data(request) -> TypingGetTestData:
    """Provides AppName instance and associated data."""
    return request.param


def test___init__(app_data: TypingGetTestData):
    """Test that an app name can be instantiated."""
    app_name = AppName(app_data.name, labels=app_data.labels)
    assert app_name.name == app_data.name
    assert app_name.labels == app_data.labels
    assert app_name.labels is not app_data.labels


def test___eq__():
    # pylint: disable=comparison-with-itself
    """Test __eq__ pass-through for different variants."""
    app_name0 = AppName.parse("a,os=linux")
    app_name1 = AppName("a", labels={"os": "linux"})
    assert app_name0 == app_name0
    assert app_name0 == app_name1
    assert app_name1 == app_name0

    app_name2 = AppName.parse("a,os=freebsd")
    assert app_name0 != app_name2


def test___hash():
    """Test __hash__ pass-through for different variants."""
    hash0 = hash(AppName.parse("a:1,os=linux,arch=amd64"))
    hash1 = hash(AppName.parse("a:1,arch=amd64,os=linux"))
    hash2 = hash(AppName.parse("b:1,arch=amd64,os=linux"))
    assert hash0 == hash1
    assert hash0 != hash2


def test___str__(app_data: TypingGetTestData):
    """Test __str__ pass-through for different variants."""
    string = str(app_data.object)
    assert string.startswith(app_data.name)
    assert not string.startswith("/")
    if app_data.version:
        assert f"{app_data.name}:{app_data.version}" in string
    else:
        assert ":" not in string
        assert "version" not in string
    for key, value in app_data.labels.items():
        assert f",{key}={value}" in string
    assert "None" not in string
    assert AppName.parse(string) == app_data.object


def test_clone(app_data: TypingGetTestData):
    """Test object cloning."""
    clone = app_data.object.clone()
    assert id(clone) != id(app_data.object)
    assert clone == app_data.object
    clone.set_label("ext", "aci")
    assert clone != app_data.object
    assert "ext" not in app_data.object.labels


def test_parse_string(app_data: TypingGetTestData):
    """Test string parsing for complex target names."""
    result = AppName._parse_string(app_data.string)
    assert result.name == app_data.name
    expected = dict(app_data.labels)
    if app_data.version:
        expected["version"] = app_data.version
    assert result.labels == expected


@pytest.mark.parametrize(
    "string,message",
    [
        ("a:b:c", "Unable to parse string"),
        ("Example.com/app", "Invalid application name"),
        ("", "Invalid application name"),
        ("app,os", "Unable to parse label"),
        ("app,=linux", "Unable to parse label"),
        ("app,os=linux,os=freebsd", "Duplicate label"),
        ("app:1.0,version=2.0", "Duplicate label"),
    ],
)
def test_parse_invalid(string: str, message: str):
    """Test that invalid target names are rejected."""
    with pytest.raises(ValueError) as exception:
        AppName.parse(string)
    assert message in str(exception.value)


def test_resolve_label(app_data: TypingGetTestData):
    """Test label resolution."""
    for key, value in app_data.labels.items():
        assert app_data.object.resolve_label(key) == value
    assert app_data.object.resolve_label("ext") is None
    assert app_data.object.resolve_label("version") == app_data.version


def test_set_label(app_data: TypingGetTestData):
    """Tests label assignment."""
    value = f"data{time()}"
    assert app_data.object.set_label("os", value) == app_data.object
    assert app_data.object.resolve_label("os") == value
