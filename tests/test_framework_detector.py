from helpers import make_snapshot, raw_element

from pageforge.framework_detector import detect_framework


def empty_body():
    return raw_element("body")


def test_framer_global_wins():
    info = detect_framework(make_snapshot(
        empty_body(), framerGlobal=True, framerProjectId="abc123", generator="WordPress 6.4",
    ))
    assert info.framework == "framer"
    assert info.is_framer_site
    assert info.framer_project_id == "abc123"


def test_framer_runtime_script():
    snapshot = make_snapshot(empty_body(), scripts=["https://framer.com/m/framer-runtime.js"])
    assert detect_framework(snapshot).framework == "framer"


def test_framer_data_attributes_in_body():
    child = raw_element("div", attributes={"data-framer-name": "Hero"})
    snapshot = make_snapshot(raw_element("body", children=[child]))
    assert detect_framework(snapshot).is_framer_site


def test_framer_hosted_image():
    img = raw_element("img", image={"src": "https://framerusercontent.com/images/x.png"})
    snapshot = make_snapshot(raw_element("body", children=[img]))
    assert detect_framework(snapshot).framework == "framer"


def test_webflow():
    assert detect_framework(make_snapshot(empty_body(), htmlClasses=["w-mod-js"])).framework == "webflow"
    assert detect_framework(make_snapshot(
        empty_body(), htmlAttributes={"data-wf-site": "1"},
    )).framework == "webflow"


def test_wordpress():
    assert detect_framework(make_snapshot(empty_body(), generator="WordPress 6.4")).framework == "wordpress"
    assert detect_framework(make_snapshot(
        empty_body(), links=["https://example.com/wp-content/themes/site.css"],
    )).framework == "wordpress"


def test_unknown():
    info = detect_framework(make_snapshot(empty_body()))
    assert info.framework == "unknown"
    assert not info.is_framer_site
    assert info.framer_project_id is None
