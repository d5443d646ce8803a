"""
Asset inliner

Replaces local asset references in template markup with their content,
so the compiled renderer carries no external file dependencies:

    <img src="logo.png">                  -> src="data:image/png;base64,..."
    <link rel="stylesheet" href="a.css">  -> <style>...</style>
    <script src="a.js"></script>          -> <script>...</script>
    <link rel="import" href="part.html">  -> the fragment's markup
    url(bg.png) in CSS                    -> url(data:image/png;base64,...)

References are resolved against the directory of the file they appear
in. Remote, data: and fragment (#) references are left as they are.
"""

import base64
import mimetypes
import re
from pathlib import Path
from typing import List, Optional, Set
from urllib.parse import unquote

import minify_html
import rcssmin
from bs4 import BeautifulSoup, Tag

from ..models.errors import AssetError
from .enrich import soup_parse
from .log import LOG

# Any scheme (http:, https:, data:, mailto:, ...), protocol-relative or fragment
EXTERNAL_RE = re.compile(r'^\s*(?:[a-zA-Z][a-zA-Z0-9+.-]*:|//|#)')
CSS_URL_RE = re.compile(r'url\(\s*([\'"]?)([^\'")]*)\1\s*\)')

# Media elements whose src attribute is inlined as a data: URI
MEDIA_ELEMENTS = ('img', 'source')


def reference_isLocal(reference: Optional[str]) -> bool:
    """True when reference names a file relative to the template"""
    return bool(reference and reference.strip() and not EXTERNAL_RE.match(reference))


def rel_has(element: Tag, value: str) -> bool:
    rel = element.get('rel') or []
    if isinstance(rel, str):
        rel = rel.split()
    return value in [r.lower() for r in rel]


class AssetInliner:
    """
    Inlines the local assets referenced by one template file

    Attributes:
        resourcePath: File the markup was read from
        minimize: Minify inlined stylesheets and HTML fragments
        inlined: Number of references replaced so far
    """

    def __init__(self, resourcePath: Path, minimize: bool = False,
                 importing: Optional[Set[Path]] = None):
        """
        Args:
            resourcePath: File the markup was read from
            minimize: Minify inlined stylesheets and HTML fragments
            importing: Fragments currently being imported (cycle guard)
        """
        self.resourcePath = Path(resourcePath)
        self.minimize = minimize
        self.importing: Set[Path] = set(importing or ())
        self.inlined = 0

    def path_resolve(self, reference: str, base: Path) -> Path:
        """
        Resolve a local reference to an existing file.

        Query strings and fragments are dropped before resolving.

        Raises:
            AssetError: The file does not exist
        """
        name = unquote(reference.strip().split('#')[0].split('?')[0])
        path = (base / name).resolve()
        if not path.is_file():
            raise AssetError(path)
        return path

    def dataUri_make(self, path: Path) -> str:
        mime = mimetypes.guess_type(path.name)[0] or 'application/octet-stream'
        data = base64.b64encode(path.read_bytes()).decode('ascii')
        self.inlined += 1
        return f"data:{mime};base64,{data}"

    def css_inline(self, css: str, base: Path) -> str:
        """Replace local url(...) references in css with data: URIs"""

        def url_replace(match: 're.Match[str]') -> str:
            reference = match.group(2)
            if not reference_isLocal(reference):
                return match.group(0)
            return f"url({self.dataUri_make(self.path_resolve(reference, base))})"

        return CSS_URL_RE.sub(url_replace, css)

    def css_minify(self, css: str) -> str:
        return rcssmin.cssmin(css) if self.minimize else css

    def html_minify(self, html: str) -> str:
        if not self.minimize:
            return html
        return minify_html.minify(html, minify_css=True, minify_js=False, keep_closing_tags=True)

    def media_inline(self, soup: BeautifulSoup) -> None:
        base = self.resourcePath.parent
        elements: List[Tag] = soup.find_all(MEDIA_ELEMENTS)
        elements += soup.find_all('input', attrs={'type': re.compile('^image$', re.I)})
        for element in elements:
            reference = element.get('src')
            if reference_isLocal(reference):
                element['src'] = self.dataUri_make(self.path_resolve(reference, base))

    def stylesheets_inline(self, soup: BeautifulSoup) -> None:
        base = self.resourcePath.parent
        for link in soup.find_all('link', href=True):
            if not rel_has(link, 'stylesheet') or not reference_isLocal(link['href']):
                continue
            path = self.path_resolve(link['href'], base)
            css = self.css_inline(path.read_text(encoding='utf-8'), path.parent)
            style = soup.new_tag('style')
            if link.get('media'):
                style['media'] = link['media']
            style.string = self.css_minify(css)
            link.replace_with(style)
            self.inlined += 1
            LOG(f"Inlined stylesheet {path.name}", level=3)

        for style in soup.find_all('style'):
            css = style.get_text()
            rewritten = self.css_inline(css, base)
            if rewritten != css:
                style.string = rewritten

        for element in soup.find_all(style=True):
            element['style'] = self.css_inline(element['style'], base)

    def scripts_inline(self, soup: BeautifulSoup) -> None:
        base = self.resourcePath.parent
        for script in soup.find_all('script', src=True):
            if not reference_isLocal(script['src']):
                continue
            path = self.path_resolve(script['src'], base)
            del script['src']
            script.string = path.read_text(encoding='utf-8')
            self.inlined += 1
            LOG(f"Inlined script {path.name}", level=3)

    def imports_inline(self, soup: BeautifulSoup) -> None:
        base = self.resourcePath.parent
        for link in soup.find_all('link', href=True):
            if not rel_has(link, 'import') or not reference_isLocal(link['href']):
                continue
            path = self.path_resolve(link['href'], base)
            if path in self.importing:
                raise AssetError(path, "circular import")
            nested = AssetInliner(path, self.minimize, self.importing | {self.resourcePath.resolve()})
            fragment = nested.inline(path.read_text(encoding='utf-8'))
            self.inlined += nested.inlined + 1
            nodes = [node.extract() for node in list(soup_parse(self.html_minify(fragment), fragment).contents)]
            if nodes:
                link.replace_with(*nodes)
            else:
                link.decompose()
            LOG(f"Imported fragment {path.name}", level=3)

    def inline(self, markup: str) -> str:
        """
        Inline every local asset referenced by markup.

        Returns:
            Markup with the references replaced

        Raises:
            AssetError: A referenced file does not exist, or fragments
                        import each other
        """
        soup = soup_parse(markup)
        self.imports_inline(soup)
        self.media_inline(soup)
        self.stylesheets_inline(soup)
        self.scripts_inline(soup)
        return soup.decode(formatter="minimal")


def assets_inline(resource_path: Path, markup: str, minimize: bool = False) -> str:
    """
    Inline the local assets referenced by markup.

    Args:
        resource_path: Template file; references resolve against its directory
        markup: Enriched template markup
        minimize: Minify inlined stylesheets and HTML fragments

    Returns:
        Markup with assets inlined

    Raises:
        AssetError: A referenced asset is missing
    """
    inliner = AssetInliner(resource_path, minimize)
    result = inliner.inline(markup)
    LOG(f"Inlined {inliner.inlined} asset(s)", level=2)
    return result
