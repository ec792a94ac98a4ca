"""
Tests for shared pipeline data structures and the error hierarchy.
"""

import pytest

import addon_porter as ap
from addon_porter.core.models import AssetTable, ClassMapping, FixedStylesheet, SourceUnit
from addon_porter.core.staging import DiskTree
from addon_porter.enums import UnitKind
from addon_porter.errors import MalformedMarkerError, PortError, UnresolvedAssetPathError


def test_source_unit_kind_and_location():
  unit = SourceUnit.from_text("addons/foo/userscript.js", "")
  assert unit.kind == UnitKind.SCRIPT
  assert unit.directory == "addons/foo"
  assert unit.name == "userscript.js"
  assert SourceUnit.from_text("a/b.css", "").kind == UnitKind.STYLESHEET
  assert SourceUnit.from_text("a/b.json", "").kind == UnitKind.OTHER


def test_class_mapping_last_marker_wins():
  mapping = ClassMapping("prompt")
  mapping.add("ok", "prompt_ok_1")
  mapping.add("ok", "prompt_ok_2")
  assert mapping == {"ok": "prompt_ok_2"}
  assert len(mapping) == 1
  assert "ok" in mapping
  assert mapping.covers(["ok"])
  assert not mapping.covers(["ok", "other"])


def test_fixed_stylesheet_accumulates():
  sheet = FixedStylesheet()
  sheet.append(".a {}\n")
  sheet.append(".b {}\n")
  assert sheet.text == FixedStylesheet.BANNER + ".a {}\n.b {}\n"
  assert sheet.rule_count == 2


def test_asset_table_resolve():
  table = AssetTable(entries={"/icon.svg": "_twAsset0"})
  assert table.resolve("/icon.svg") == "_twAsset0"
  with pytest.raises(UnresolvedAssetPathError) as exc:
    table.resolve("/other.svg")
  assert "Unknown asset: /other.svg" in str(exc.value)


def test_error_formatting():
  assert str(PortError("boom")) == "boom"
  assert str(PortError("boom", path="a.js", addon="foo")) == "[addon: foo] [a.js] boom"
  err = MalformedMarkerError("x_y", path="a.js")
  assert err.token == "x_y"
  assert isinstance(err, PortError)


def test_port_on_disk(tmp_path, upstream_files):
  """The package-level `port` helper runs the pipeline over directories."""
  source = DiskTree(tmp_path / "up")
  for path, content in upstream_files.items():
    source.write_text(path, content)
  DiskTree(tmp_path / "host").write_text("components/menu/menu.css", ".item { margin: 0; }\n")

  result = ap.port(tmp_path / "up", out=tmp_path / "out", host=tmp_path / "host", addons=["bar"])

  assert result.version == "1.2.3-tw"
  assert result.fixed_rules == 1
  assert (tmp_path / "out" / "addons" / "bar" / "userscript.js").exists()
