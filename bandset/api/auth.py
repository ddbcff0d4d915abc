from fastapi import APIRouter, Depends, Request, Response, status
from sqlalchemy.orm import Session

from bandset.api.deps import SESSION_COOKIE, get_current_user, session_token
from bandset.api.schemas import LoginRequest, LoginResponse, RegisterRequest, Success, UserOut
from bandset.auth import authenticate, delete_session, generate_session, log_event, register_user
from bandset.config import SESSION_COOKIE_SECURE, SESSION_DURATION
from bandset.db import get_db
from bandset.db.models import User
from bandset.errors import UnauthorizedError

router = APIRouter(prefix='/api', tags=['auth'])


def _start_session(db: Session, response: Response, user: User) -> LoginResponse:
    token = generate_session(db, user.id)
    response.set_cookie(
        SESSION_COOKIE,
        token,
        max_age=SESSION_DURATION,
        httponly=True,
        samesite='lax',
        secure=SESSION_COOKIE_SECURE,
        path='/',
    )
    return LoginResponse(user=UserOut.model_validate(user), token=token)


@router.post('/register', response_model=LoginResponse, status_code=status.HTTP_201_CREATED)
def register(body: RegisterRequest, response: Response, db: Session = Depends(get_db)):
    user = register_user(db, body.username, body.password, email=body.email, name=body.name)
    log_event(db, user.id, 'register', {'username': user.username})
    return _start_session(db, response, user)


@router.post('/login', response_model=LoginResponse)
def login(body: LoginRequest, response: Response, db: Session = Depends(get_db)):
    user = authenticate(db, body.username, body.password)
    if user is None:
        log_event(db, None, 'login_failed', {'username': body.username})
        raise UnauthorizedError('Invalid credentials')
    log_event(db, user.id, 'login', {})
    return _start_session(db, response, user)


@router.post('/logout', response_model=Success)
def logout(request: Request, response: Response, db: Session = Depends(get_db)):
    token = session_token(request)
    if token:
        delete_session(db, token)
    response.delete_cookie(SESSION_COOKIE, path='/')
    return Success()


@router.get('/me', response_model=UserOut)
def me(user: User = Depends(get_current_user)):
    return UserOut.model_validate(user)
