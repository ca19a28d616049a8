from pathlib import Path

from hotwire.core.naming import infer_component_name, module_name_for_path


def test_infer_component_name_from_dashed_and_dotted_names():
    assert infer_component_name("chat-log.module.py") == "ChatLogModuleComponent"
    assert infer_component_name(Path("/tmp/components/greeter.py")) == "GreeterComponent"


def test_infer_component_name_does_not_double_suffix():
    assert infer_component_name("audit-component.py") == "AuditComponent"
    assert infer_component_name("AuditComponent.py") == "AuditComponent"


def test_infer_component_name_splits_on_underscores():
    assert infer_component_name("rate_limit.py") == "RateLimitComponent"


def test_module_name_for_path_is_versioned_and_importable():
    first = module_name_for_path(Path("/x/my-file.py"), "commandloader", 1)
    second = module_name_for_path(Path("/x/my-file.py"), "commandloader", 2)

    assert first == "_hotwire_commandloader_my_file_v1"
    assert first != second
    assert "." not in first
