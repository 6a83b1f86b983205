"""
Jira content parsing.

Turns Jira rich text (ADF documents from Jira Cloud, rendered HTML or plain
wiki text from Jira Server) into plain text with one acceptance criterion
per line.
"""
import re
from typing import Any, Dict, List

from bs4 import BeautifulSoup

HTML_TAG = re.compile(r'<[a-zA-Z/][^>]*>')
LIST_PREFIX = re.compile(r'^(?:[-*•]\s+|#\s+|\d+[.)]\s+)')


class JiraContentParser:
    """Utility class for converting ADF/HTML content from Jira to text."""

    @staticmethod
    def normalize_to_text(content: Any) -> str:
        """Convert Jira content to plain text.

        Handles ADF (Atlassian Document Format, Jira Cloud), HTML (rendered
        fields) and plain text (Jira Server wiki markup).

        Args:
            content: ADF dictionary, HTML string or plain string

        Returns:
            Plain text, one paragraph or list item per line
        """
        if not content:
            return ""

        if isinstance(content, dict):
            text = JiraContentParser._parse_adf(content)
        elif isinstance(content, str) and HTML_TAG.search(content):
            text = JiraContentParser._parse_html(content)
        else:
            text = str(content)

        return JiraContentParser._clean_lines(text)

    @staticmethod
    def _parse_adf(node: Dict) -> str:
        """Parse an ADF node (and its children) to text."""
        if not isinstance(node, dict):
            return str(node) if node else ""

        node_type = node.get('type', '')
        children = node.get('content', [])

        if node_type == 'text':
            return node.get('text', '')

        if node_type == 'hardBreak':
            return '\n'

        if node_type in ('mention', 'emoji'):
            attrs = node.get('attrs', {})
            return attrs.get('text') or attrs.get('shortName', '')

        if node_type == 'inlineCard':
            return node.get('attrs', {}).get('url', '')

        inner = ''.join(JiraContentParser._parse_adf(child) for child in children)

        if node_type in ('paragraph', 'heading', 'codeBlock', 'listItem', 'tableRow'):
            return inner + '\n' if inner else ''

        if node_type == 'tableCell' or node_type == 'tableHeader':
            return inner.strip() + ' '

        return inner

    @staticmethod
    def _parse_html(html_content: str) -> str:
        """Parse HTML content to text, one block element or list item per line."""
        soup = BeautifulSoup(html_content, 'html.parser')

        for br in soup.find_all('br'):
            br.replace_with('\n')

        for li in soup.find_all('li'):
            text = ' '.join(li.get_text(separator=' ').split())
            li.replace_with(soup.new_string(f'\n{text}\n'))

        return soup.get_text(separator='\n')

    @staticmethod
    def _clean_lines(text: str) -> str:
        """Trim lines, drop blank ones and strip list bullets and numbering."""
        lines: List[str] = []
        for line in text.replace('\r\n', '\n').replace('\r', '\n').split('\n'):
            stripped = LIST_PREFIX.sub('', line.strip()).strip()
            if stripped:
                lines.append(stripped)
        return '\n'.join(lines)
