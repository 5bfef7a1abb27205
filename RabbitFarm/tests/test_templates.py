from utils.templates import render_string, render_template


def test_render_string_escapes_and_blanks_unknown():
    out = render_string("<p>{{ userName }} / {{missing}}</p>", {"userName": "<Ana>"})

    assert out == "<p>&lt;Ana&gt; / </p>"


def test_render_template_from_directory(tmp_path):
    (tmp_path / "hello.html").write_text("Hi {{name}} from {{appName}}", encoding="utf-8")

    assert render_template("hello.html", {"name": "Ana", "appName": "Rabbit Farm"}, tmp_path) == \
        "Hi Ana from Rabbit Farm"


def test_render_template_missing_file_returns_none(tmp_path):
    assert render_template("nope.html", {}, tmp_path) is None


def test_bundled_error_template_renders_message():
    page = render_template("email_verification_error.html", {"errorMessage": "Invalid verification token",
                                                             "appName": "Rabbit Farm"})

    assert page is not None
    assert "Invalid verification token" in page
    assert "{{" not in page
