"""
Test the fault taxonomy.
"""

from strata import (
    ConfigInvalidFault,
    Fault,
    FaultDomain,
    Severity,
    SourceReadFault,
    TemplateExecutionFault,
    TemplateFault,
    TemplateNotFoundFault,
    TemplateParseFault,
)


def test_template_faults_share_base():
    """Test every template fault is catchable as TemplateFault."""
    faults = [
        SourceReadFault("templates/a.html", "denied"),
        TemplateParseFault("a.html", "unexpected end of template", 3),
        TemplateNotFoundFault("a.html"),
        TemplateExecutionFault("a.html", "boom"),
    ]

    for fault in faults:
        assert isinstance(fault, TemplateFault)
        assert isinstance(fault, Exception)
        assert fault.domain == FaultDomain.TEMPLATE


def test_fault_codes():
    assert SourceReadFault("p", "r").code == "TEMPLATE_SOURCE_READ"
    assert TemplateParseFault("p", "r").code == "TEMPLATE_PARSE"
    assert TemplateNotFoundFault("p").code == "TEMPLATE_NOT_FOUND"
    assert TemplateExecutionFault("p", "r").code == "TEMPLATE_EXECUTION"


def test_construction_faults_are_fatal():
    """Test read and parse faults abort startup."""
    assert SourceReadFault("p", "r").severity is Severity.FATAL
    assert TemplateParseFault("p", "r").severity is Severity.FATAL
    assert TemplateNotFoundFault("p").severity is Severity.ERROR


def test_parse_fault_location():
    fault = TemplateParseFault("user/list.html", "unexpected '}'", 7)

    assert str(fault) == "[TEMPLATE_PARSE] Cannot parse template 'user/list.html:7': unexpected '}'"
    assert fault.lineno == 7


def test_to_dict():
    data = TemplateNotFoundFault("does/not/exist").to_dict()

    assert data == {
        "code": "TEMPLATE_NOT_FOUND",
        "message": "Template 'does/not/exist' not found",
        "domain": "template",
        "severity": "error",
        "public": False,
        "metadata": {"name": "does/not/exist"},
    }


def test_config_fault_domain():
    fault = ConfigInvalidFault("templates.mode", "bad")

    assert isinstance(fault, Fault)
    assert not isinstance(fault, TemplateFault)
    assert fault.domain == FaultDomain.CONFIG
    assert "TemplateNotFoundFault" in repr(TemplateNotFoundFault("x"))
