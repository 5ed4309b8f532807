import argparse
import getpass
import json
import sys
from pathlib import Path
from typing import Optional

from endpoints import BASE_URL
from .app import AppState
from .errors import LodestoneError
from .models import DownloadedFile, SearchQuery, ViewState
from .session_store import DEFAULT_SESSION_PATH
from .utils import format_bytes, safe_filename


def _max_results(value: str) -> int:
    num = int(value)
    if not 1 <= num <= 100:
        raise argparse.ArgumentTypeError("must be between 1 and 100")
    return num


def _threshold(value: str) -> float:
    num = float(value)
    if not 0.0 <= num <= 1.0:
        raise argparse.ArgumentTypeError("must be between 0 and 1")
    return num


def build_parser() -> argparse.ArgumentParser:
    p = argparse.ArgumentParser(prog='lodestone')
    p.add_argument('--base-url', default=BASE_URL)
    p.add_argument('--session', default=DEFAULT_SESSION_PATH)
    sub = p.add_subparsers(dest='cmd', required=True)

    login = sub.add_parser('login')
    login.add_argument('username')
    login.add_argument('--password')

    register = sub.add_parser('register')
    register.add_argument('email')
    register.add_argument('username')
    register.add_argument('--password')

    sub.add_parser('logout')
    sub.add_parser('whoami')

    ls = sub.add_parser('ls')
    ls.add_argument('--json', action='store_true')

    upload = sub.add_parser('upload')
    upload.add_argument('path')

    pull = sub.add_parser('pull')
    pull.add_argument('file_id')
    pull.add_argument('--out')

    rm = sub.add_parser('rm')
    rm.add_argument('file_id')

    search = sub.add_parser('search')
    search.add_argument('query')
    search.add_argument('--collection')
    search.add_argument('--max-results', type=_max_results, default=10)
    search.add_argument('--threshold', type=_threshold)

    return p


def _password(args: argparse.Namespace) -> str:
    return args.password if args.password is not None else getpass.getpass('Password: ')


def _save_to(app: AppState, out: Optional[str]):
    def save(payload: DownloadedFile) -> None:
        if out:
            dest = Path(out)
        else:
            name = safe_filename(payload.filename)
            if name is None:
                app.errors.report(LodestoneError(f"Refusing to save under {payload.filename!r}; pass --out"))
                return
            dest = Path(name)
        try:
            dest.write_bytes(payload.content)
        except OSError as exc:
            app.errors.report(LodestoneError(f"Could not save {dest}: {exc.strerror or exc}"))
            return
        print(f'Saved {dest} ({format_bytes(len(payload.content))})')

    return save


def run(args: argparse.Namespace, app: AppState) -> int:
    if args.cmd == 'logout':
        app.session.logout()
        print('OK')
        return 0

    app.start()
    if args.cmd == 'login':
        app.session.login(args.username, _password(args))
    elif args.cmd == 'register':
        app.session.register(args.email, args.username, _password(args))
    else:
        if not app.session.is_authenticated:
            if not app.errors:
                print('Not signed in. Run: lodestone login <username>', file=sys.stderr)
            return _finish(app, 1)

    if args.cmd in ('login', 'register', 'whoami'):
        if app.session.identity is not None:
            user = app.session.identity
            print(f"{user.username} <{user.email}> (id={user.id})")
        return _finish(app)

    if args.cmd == 'ls':
        app.views.navigate(ViewState.FILES)
        if args.json:
            print(json.dumps([record.__dict__ for record in app.files.records], indent=2))
        else:
            for record in app.files.records:
                print(f"{record.id}\t{format_bytes(record.file_size)}\t{record.upload_status}\t{record.original_filename}")
        return _finish(app)

    if args.cmd == 'upload':
        app.files.upload(args.path)
        if not app.errors:
            print('OK')
        return _finish(app)

    if args.cmd == 'rm':
        app.files.delete(args.file_id)
        if not app.errors:
            print('OK')
        return _finish(app)

    if args.cmd == 'pull':
        app.views.navigate(ViewState.FILES)
        try:
            filename = app.files.get(args.file_id).original_filename
        except KeyError:
            filename = ''
        app.files.download(args.file_id, filename, _save_to(app, args.out))
        return _finish(app)

    if args.cmd == 'search':
        app.views.navigate(ViewState.SEARCH)
        query = SearchQuery(
            query=args.query,
            collection_name=args.collection,
            max_results=args.max_results,
            score_threshold=args.threshold,
        )
        if app.search.submit(query) and not app.errors:
            print(json.dumps(app.search.results, indent=2, ensure_ascii=False))
        return _finish(app)

    return 1


def _finish(app: AppState, code: int = 0) -> int:
    if app.errors:
        print(f'Error: {app.errors.message}', file=sys.stderr)
        return 1
    return code


def main(argv: Optional[list] = None) -> int:
    parser = build_parser()
    args = parser.parse_args(argv)
    app = AppState.create(base_url=args.base_url, session_path=args.session)
    try:
        return run(args, app)
    finally:
        app.close()


if __name__ == '__main__':
    raise SystemExit(main())
