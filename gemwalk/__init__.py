from gemwalk.actor import Actor, get, send_input
from gemwalk.certificates import PeerCertificate
from gemwalk.models import Url, UserAgent
from gemwalk.normalizer import UrlNormalizer, normalize_url
from gemwalk.response import Response
from gemwalk.robots import RobotsCache, RobotsPolicy, RobotsRuleSet, parse_robots
from gemwalk.status import Status, StatusClass
from gemwalk.gemtext import (
    Gemtext,
    Heading,
    Link,
    ListItem,
    PlainText,
    PreformatLine,
    PreformatToggle,
    Quote,
    parse_gemtext,
)
from gemwalk.errors import (
    CertificateFileError,
    ConnectError,
    ContentDecodeError,
    GeminiError,
    HeaderTooLarge,
    InvalidDomain,
    InvalidUrl,
    MalformedStatusLine,
    ProtocolError,
    RequestTooLarge,
    ResponseError,
    RobotDenied,
    StreamError,
    Timeout,
    TlsError,
    UnexpectedFiletype,
    UnexpectedStatus,
    UrlError,
)
