"""Upload-and-convert web front end."""

import html
import zipfile
from urllib.parse import quote

from fastapi import FastAPI, File, UploadFile
from fastapi.responses import HTMLResponse, Response

from makeepub.core.context import JobContext
from makeepub.core.errors import MakeEpubError
from makeepub.core.folder import ZipFolder
from makeepub.core.maker import EpubMaker

HOME_PAGE = """<!DOCTYPE html>
<html>
  <head>
    <meta charset="utf-8" />
    <title>MakeEpub</title>
  </head>
  <body>
    <form enctype="multipart/form-data" action="/" method="POST">
      <label>Source File:</label><input name="input" type="file" />
      <input type="submit" value="Upload &amp; Make">
    </form>
  </body>
</html>
"""

ERROR_PAGE = """<!DOCTYPE html>
<html>
  <head>
    <meta charset="utf-8" />
    <title>MakeEpub</title>
  </head>
  <body>
    <h1>Failed to convert</h1>
    <pre>{log}</pre>
    <p>{error}</p>
  </body>
</html>
"""


def _content_disposition(name: str) -> str:
    fallback = name.encode("ascii", "replace").decode("ascii").replace("?", "_")
    fallback = fallback.replace('"', "_")
    return f"attachment; filename=\"{fallback}\"; filename*=UTF-8''{quote(name)}"


def create_app() -> FastAPI:
    """Create the FastAPI app."""
    app = FastAPI(title="makeepub")

    @app.get("/", response_class=HTMLResponse)
    def home() -> str:
        return HOME_PAGE

    @app.post("/")
    def convert(input: UploadFile = File(...)) -> Response:
        name = input.filename or "upload.zip"
        ctx = JobContext(name=name)
        try:
            data = input.file.read()
            with ZipFolder(data, name=name) as folder:
                result = EpubMaker(ctx).process(folder)
        except (MakeEpubError, OSError, zipfile.BadZipFile) as e:
            page = ERROR_PAGE.format(
                log=html.escape("\n".join(ctx.messages)),
                error=html.escape(str(e)),
            )
            return HTMLResponse(page, status_code=400)

        return Response(
            content=result.data,
            media_type="application/epub+zip",
            headers={"Content-Disposition": _content_disposition(result.name)},
        )

    return app


def run(host: str = "0.0.0.0", port: int = 8080) -> None:
    import uvicorn

    uvicorn.run(create_app(), host=host, port=port)
