# Shared pytest fixtures
from __future__ import annotations
import gzip
import tempfile
from collections.abc import Callable
from pathlib import Path
import pytest

# Three states: Alabama (full project + FSR), Alaska (FSR only), Arizona (bare project)
SAMPLE_EXPORT_XML = """<?xml version="1.0" encoding="UTF-8"?>
<ImlsExport>
  <FiscalYear year="2016">
    <State state="Alabama">
      <FSR id="11" federalGrantNumber="LS-00-16-0001-16" status="Accepted" version="2">
        <Allotment>1000</Allotment>
        <Comment>redundant</Comment>
      </FSR>
      <Project id="100" sprProjectCode="2016-AL-1" version="1" status="Accepted">
        <Title>Summer Reading</Title>
        <StartDate>2016-01-01</StartDate>
        <Abstract>&lt;p&gt;Read &lt;b&gt;more&lt;/b&gt;&lt;/p&gt;</Abstract>
        <Director><Name>Ann Example</Name></Director>
        <Grantee>
          <Name>Central Library</Name>
          <Address1>1 Main St</Address1>
          <City>Montgomery</City>
          <State>AL</State>
          <Zip>36104</Zip>
        </Grantee>
        <Budgets>
          <Budget type="Salaries / Wages">
            <LSTA>100.50</LSTA>
            <Match_State>10</Match_State>
            <Narrative>staff</Narrative>
          </Budget>
          <Budget type="Supplies">
            <LSTA>0.25</LSTA>
          </Budget>
        </Budgets>
        <ProjectTags>beta,gamma,alpha</ProjectTags>
        <Intents>
          <Intent>
            <IntentName>Lifelong Learning</IntentName>
            <Subject>Reading</Subject>
          </Intent>
        </Intents>
        <ProjectActivities>
          <ProjectActivity id="7">
            <Title>Story time</Title>
            <Quantity>
              <QuantityName>Sessions</QuantityName>
              <QuantityValue>12</QuantityValue>
            </Quantity>
          </ProjectActivity>
        </ProjectActivities>
      </Project>
    </State>
    <State state="Alaska">
      <FSR id="12">
        <Allotment>2000</Allotment>
      </FSR>
    </State>
    <State state="Arizona">
      <Project id="200">
        <Exemplary><ExemplaryNarrative>foo</ExemplaryNarrative></Exemplary>
      </Project>
    </State>
  </FiscalYear>
</ImlsExport>
"""

# Alabama's second project carries a non-numeric amount
BROKEN_EXPORT_XML = """<?xml version="1.0" encoding="UTF-8"?>
<ImlsExport>
  <FiscalYear year="2017">
    <State state="Alabama">
      <Project id="1"><Title>ok</Title></Project>
      <Project id="2">
        <Budgets><Budget type="Supplies"><LSTA>abc</LSTA></Budget></Budgets>
      </Project>
    </State>
  </FiscalYear>
</ImlsExport>
"""


@pytest.fixture()
def temp_workdir(monkeypatch) -> Path:
    with tempfile.TemporaryDirectory() as d:
        p = Path(d)
        (p / "config").mkdir()
        (p / "data").mkdir()
        (p / "logs").mkdir()
        monkeypatch.chdir(p)
        # 実行環境のトークンでアップロードが走らないように
        monkeypatch.delenv("GITHUB_TOKEN", raising=False)
        yield p


@pytest.fixture()
def sample_config_yaml() -> str:
    return """output_directory: ./generated
error_log_directory: ./logs
on_record_error: abort
sanitize:
  bare: true
  word_2000: true
upload:
  enabled: false
  owner: IMLS
  repository: state-program-report-data
"""


@pytest.fixture()
def write_config(temp_workdir: Path, sample_config_yaml: str) -> Path:
    cfg = temp_workdir / "config" / "convert.yml"
    cfg.write_text(sample_config_yaml, encoding="utf-8")
    return cfg


@pytest.fixture()
def write_export(temp_workdir: Path) -> Callable[[str, str], Path]:
    def _write(xml: str, name: str = "export.xml.gz") -> Path:
        path = temp_workdir / "data" / name
        path.write_bytes(gzip.compress(xml.encode("utf-8")))
        return path
    return _write


@pytest.fixture()
def sample_export(write_export) -> Path:
    return write_export(SAMPLE_EXPORT_XML)


@pytest.fixture()
def broken_export(write_export) -> Path:
    return write_export(BROKEN_EXPORT_XML, "broken.xml.gz")
