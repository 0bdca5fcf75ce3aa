import logging
import re
from pathlib import Path
from typing import List

from jinja2 import Environment
from markupsafe import Markup

from .. import config
from ..exceptions import FileOperationError
from ..models import Options, Page

_jinja_env = Environment(autoescape=True, keep_trailing_newline=True)
Template = _jinja_env.from_string

_PAGE_FILE_RE = re.compile(r'^page_(\d+)\.html$')

NAVIGATION_TEMPLATE = Template("""\
<hr>
<nav>
<ol>
{% for page in pages %}<li><a id="nav-{{ page.index }}" href="{{ page.filename }}">{{ page.label }}</a></li>
{% endfor %}</ol>
</nav>
""")

PAGE_TEMPLATE = Template("""\
<!DOCTYPE html>
<html lang="en">

<head>
    <meta charset="utf-8">
    <title>Photos</title>
    <meta name="viewport" content="width=device-width, initial-scale=1.0">
    <link rel="stylesheet" type="text/css" href="./css/style.css">
    <link rel="icon" href="/favicon.ico" sizes="any">
    <link rel="icon" href="/icon.svg" type="image/svg+xml">
    <link rel="apple-touch-icon" href="/apple-touch-icon.png">
    <link rel="manifest" href="/site.webmanifest">
    <meta name="theme-color" content="#ffffff">
    <style>#nav-{{ index }} { font-weight: bold; color: gray; }</style>
</head>

<body>
{% for day, entries in groups %}
<h2>{{ day }}</h2>
<div class="masonry-grid">
{% for href, src in entries %}<figure><a href="{{ href }}"><img src="./{{ src }}"></a></figure>
{% endfor %}</div>
{% endfor %}
{{ navigation }}
</body>

</html>
""")

INDEX_TEMPLATE = Template("""\
<!DOCTYPE html>
<html lang="en">
<head>
<meta charset="utf-8">
<meta http-equiv="refresh" content="0; url={{ target }}">
<title>Photos</title>
</head>
<body>
<a href="{{ target }}">Photos</a>
</body>
</html>
""")


def render_navigation(pages: List[Page]) -> Markup:
    """Navigation list linking every page by its date span; shared by all pages."""
    return Markup(NAVIGATION_TEMPLATE.render(pages=pages))


class PageRenderer:
    def __init__(self, options: Options):
        self.options = options

    def render(self, page: Page, navigation: Markup) -> str:
        # Relativize up front so a stray path fails before anything is written
        groups = []
        for group in page.groups:
            entries = [
                (self.options.relative_path(p.display_path),
                 self.options.relative_path(p.thumbnail_path))
                for p in group.photos
            ]
            groups.append((group.date.isoformat(), entries))

        return PAGE_TEMPLATE.render(index=page.index, groups=groups, navigation=navigation)

    def write(self, page: Page, navigation: Markup) -> Path:
        path = self.options.output_dir / page.filename
        self._write_text(path, self.render(page, navigation))
        logging.info(f"Wrote {page.filename} ({page.photo_count} photos, {page.label})")
        return path

    def write_index(self, pages: List[Page]) -> Path:
        """Writes index.html redirecting to the most recent page."""
        path = self.options.output_dir / config.INDEX_FILENAME
        self._write_text(path, INDEX_TEMPLATE.render(target=pages[0].filename))
        return path

    def remove_index(self) -> bool:
        """Removes index.html so it does not point at a page that no longer exists."""
        path = self.options.output_dir / config.INDEX_FILENAME
        if not path.exists():
            return False
        try:
            path.unlink()
        except OSError as e:
            raise FileOperationError(f"Cannot remove stale index {path}: {e}") from e
        logging.info(f"Removed {path.name}")
        return True

    def prune_pages(self, page_count: int) -> List[Path]:
        """Removes page files left over from an earlier run with more pages."""
        removed = []
        for p in sorted(self.options.output_dir.iterdir()):
            m = _PAGE_FILE_RE.match(p.name)
            if m and int(m.group(1)) >= page_count:
                try:
                    p.unlink()
                except OSError as e:
                    raise FileOperationError(f"Cannot remove stale page {p}: {e}") from e
                logging.info(f"Removed stale page {p.name}")
                removed.append(p)
        return removed

    def _write_text(self, path: Path, text: str):
        try:
            path.write_text(text, encoding='utf-8')
        except OSError as e:
            raise FileOperationError(f"Cannot write {path}: {e}") from e
