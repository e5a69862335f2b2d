import io
import zipfile

import pytest

from convert_toolkit.core.exceptions import (
    OutputResolutionError,
    ParameterError,
    TransformationError,
)
from convert_toolkit.core.transform import ArchiveOutput, StreamOutput, XslTransformation

XSL_HEAD = (
    '<xsl:stylesheet version="1.0" '
    'xmlns:xsl="http://www.w3.org/1999/XSL/Transform" '
    'xmlns:out="urn:convert-toolkit:output" '
    'extension-element-prefixes="out">'
)
XSL_TAIL = "</xsl:stylesheet>"

BOOK = (
    "<book>"
    '<chapter id="intro"><title>Intro</title></chapter>'
    '<chapter id="end"><title>End</title></chapter>'
    "</book>"
)

FAN_OUT_XSL = (XSL_HEAD + """
  <xsl:template match="/">
    <summary><xsl:value-of select="count(//chapter)"/></summary>
    <xsl:for-each select="//chapter">
      <out:document href="chapters/{@id}.xml">
        <section><xsl:value-of select="title"/></section>
      </out:document>
      <out:document href="notes/{seq}.txt" method="text">
        <xsl:value-of select="title"/>
      </out:document>
    </xsl:for-each>
  </xsl:template>
""" + XSL_TAIL).encode("utf-8")

PARAM_XSL = (XSL_HEAD + """
  <xsl:param name="greeting" select="'none'"/>
  <xsl:template match="/"><result><xsl:value-of select="$greeting"/></result></xsl:template>
""" + XSL_TAIL).encode("utf-8")


def _run(stylesheet: bytes, content: str, target_factory, **params):
    buffer = io.BytesIO()
    target = target_factory(buffer)
    transformation = XslTransformation(stylesheet)
    transformation.set_parameters(params)
    count = transformation.transform(content, target)
    target.close()
    return count, buffer.getvalue(), target


class TestFanOut:

    def test_outputs_become_archive_entries_in_order(self):
        count, data, target = _run(FAN_OUT_XSL, BOOK, ArchiveOutput)

        assert count == 4
        archive = zipfile.ZipFile(io.BytesIO(data))
        assert archive.namelist() == [
            "chapters/intro.xml",
            "notes/2.txt",
            "chapters/end.xml",
            "notes/4.txt",
        ]
        assert target.entries == archive.namelist()
        assert archive.read("chapters/intro.xml").endswith(b"<section>Intro</section>")
        assert archive.read("chapters/intro.xml").startswith(b"<?xml")
        assert archive.read("notes/4.txt") == b"End"

    def test_primary_result_goes_to_primary_entry(self):
        buffer = io.BytesIO()
        target = ArchiveOutput(buffer, primary_entry="summary.xml")
        XslTransformation(FAN_OUT_XSL).transform(BOOK, target)
        target.close()
        archive = zipfile.ZipFile(io.BytesIO(buffer.getvalue()))
        assert archive.namelist()[-1] == "summary.xml"
        assert b"<summary>2</summary>" in archive.read("summary.xml")

    def test_fan_out_refused_in_single_document_mode(self):
        with pytest.raises(OutputResolutionError) as exc_info:
            _run(FAN_OUT_XSL, BOOK, StreamOutput)
        assert exc_info.value.href == "chapters/intro.xml"

    def test_missing_placeholder_attribute(self):
        stylesheet = (XSL_HEAD + """
          <xsl:template match="/book">
            <out:document href="x/{@missing}.xml"><empty/></out:document>
          </xsl:template>
        """ + XSL_TAIL).encode("utf-8")
        with pytest.raises(OutputResolutionError):
            _run(stylesheet, BOOK, ArchiveOutput)

    def test_no_fan_out_in_stream_mode(self):
        count, data, _ = _run(PARAM_XSL, "<doc/>", StreamOutput)
        assert count == 0
        assert b"<result>none</result>" in data


class TestParameters:

    def test_parameter_passed_as_string(self):
        _, data, _ = _run(PARAM_XSL, "<doc/>", StreamOutput, greeting="it's \"quoted\"")
        assert "it's" in data.decode("utf-8")

    @pytest.mark.parametrize("name", ["1abc", "has space", "profile_run", ""])
    def test_invalid_names_rejected(self, name):
        transformation = XslTransformation(PARAM_XSL)
        with pytest.raises(ParameterError):
            transformation.set_parameters({name: "v"})

    def test_none_value_rejected(self):
        with pytest.raises(ParameterError):
            XslTransformation(PARAM_XSL).set_parameters({"greeting": None})


class TestFailures:

    def test_unreadable_stylesheet(self):
        with pytest.raises(TransformationError):
            XslTransformation(b"<xsl:stylesheet")

    def test_missing_stylesheet_file(self, tmp_path):
        with pytest.raises(TransformationError):
            XslTransformation(tmp_path / "nope.xsl")

    def test_invalid_xslt(self):
        stylesheet = (XSL_HEAD + '<xsl:template match="/"><xsl:bogus/></xsl:template>' + XSL_TAIL)
        transformation = XslTransformation(stylesheet.encode("utf-8"))
        sink = io.BytesIO()
        with pytest.raises(TransformationError) as excinfo:
            transformation.transform("<doc/>", StreamOutput(sink))
        assert "could not be compiled" in str(excinfo.value)
        assert excinfo.value.log_entries
        assert sink.getvalue() == b""

    def test_terminating_message(self):
        stylesheet = (XSL_HEAD + """
          <xsl:template match="/"><xsl:message terminate="yes">stop here</xsl:message></xsl:template>
        """ + XSL_TAIL).encode("utf-8")
        with pytest.raises(TransformationError) as exc_info:
            _run(stylesheet, "<doc/>", StreamOutput)
        assert any("stop here" in line for line in exc_info.value.log_entries)

    def test_malformed_input(self):
        with pytest.raises(TransformationError):
            _run(PARAM_XSL, "<doc>", StreamOutput)
