from apps.application.acceptance.markdown import render_markdown


class TestRenderMarkdown:
    def test_headings_and_paragraphs(self):
        html = render_markdown('# Terms\n\n## 1. Use\nFirst line\nSecond line')

        assert html == '<h1>Terms</h1><h2>1. Use</h2><p>First line<br>Second line</p>'

    def test_bullets_and_emphasis(self):
        html = render_markdown('- **Bold** item\n- *soft* item\n\nAfter')

        assert html == '<ul><li><strong>Bold</strong> item</li><li><em>soft</em> item</li></ul><p>After</p>'

    def test_raw_html_is_neutralised(self):
        html = render_markdown('Hello <script>alert(1)</script> <img src=x onerror=alert(1)>')

        assert '<script>' not in html
        assert '<img' not in html
        assert 'onerror' not in html or '&lt;img' in html

    def test_empty(self):
        assert render_markdown('') == ''
        assert render_markdown(None) == ''
