import json

import matplotlib

matplotlib.use("Agg")

import conceptmap.__main__ as cli
import conceptmap.viewer as viewer_module


def _write_expansion(tmp_path):
    path = tmp_path / "expand.json"
    path.write_text(
        json.dumps(
            {
                "nodes": [
                    {"id": "marx", "label": "Karl Marx", "type": "person", "year": 1867},
                    {"id": "weber", "label": "Max Weber", "type": "person", "year": 1905},
                    {"label": "broken"},
                ],
                "links": [],
            }
        ),
        encoding="utf-8",
    )
    return path


def test_main_prints_coordinates_for_expanded_map(tmp_path, capsys):
    expansion = _write_expansion(tmp_path)

    cli.main(["--expand", str(expansion), "--mode", "timeline", "--log-level", "WARNING"])

    out = capsys.readouterr().out
    assert "Mode: timeline" in out
    assert "idle=True" in out
    assert "  root: (" in out
    assert "  marx: (" in out
    assert "  weber: (" in out
    assert "  (none)" in out


def test_main_writes_png(tmp_path, monkeypatch):
    rendered = []

    def _save(frame, path, **kwargs):
        rendered.append((sorted(frame.nodes), path, kwargs))
        return path

    monkeypatch.setattr(cli, "save_frame_png", _save)
    png_path = tmp_path / "out" / "map.png"

    cli.main(["--png", str(png_path), "--max-ticks", "5", "--width", "640", "--height", "480"])

    assert len(rendered) == 1
    node_ids, path, kwargs = rendered[0]
    assert node_ids == ["root"]
    assert str(path) == str(png_path)
    assert kwargs["width"] == 640.0
    assert kwargs["height"] == 480.0
    assert kwargs["title"] == "Sociology"


def test_main_show_opens_viewer_with_expansions(tmp_path, monkeypatch):
    created = []

    class _FakeEngine:
        def __init__(self):
            self.submitted = []

        def submit_expand(self, result, anchor_id=None):
            self.submitted.append((sorted(node.id for node in result.nodes), anchor_id))

    class _FakeViewer:
        def __init__(self, root, **kwargs):
            self.root = root
            self.kwargs = kwargs
            self.engine = _FakeEngine()
            self.shown = False
            created.append(self)

        def show(self):
            self.shown = True

    monkeypatch.setattr(viewer_module, "MapViewer", _FakeViewer)
    expansion = _write_expansion(tmp_path)

    cli.main(["--show", "--expand", str(expansion), "--seed", "7"])

    (viewer,) = created
    assert viewer.shown
    assert viewer.root.label == "Sociology"
    assert viewer.kwargs["mode"] == "network"
    assert viewer.kwargs["config"].random_seed == 7
    assert viewer.engine.submitted == [(["marx", "weber"], "root")]
