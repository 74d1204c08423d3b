"""Tests for the Rich console factory."""

from heimdall.output.console import create_console, get_output, style_for_type


class TestCreateConsole:
    def test_renders_to_buffer(self) -> None:
        console = create_console(no_color=True, width=40)
        console.print("hello")
        assert get_output(console) == "hello\n"

    def test_theme_styles_resolve(self) -> None:
        console = create_console()
        console.print("[hd.ok]OK[/hd.ok]")
        assert "OK" in get_output(console)


class TestStyleForType:
    def test_known_types(self) -> None:
        assert style_for_type("boolean") == "hd.type.boolean"
        assert style_for_type("array") == "hd.type.array"

    def test_unknown_type_is_unstyled(self) -> None:
        assert style_for_type("any") == ""
