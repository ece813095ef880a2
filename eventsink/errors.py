class StreamError(Exception):
    pass


class StreamClosedError(StreamError):
    pass


class StreamLockedError(StreamError):
    pass
