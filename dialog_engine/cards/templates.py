class Template:
    """
    Card kinds accepted by render_attachment(). Each value is also the stem
    of its template file under templates/.
    """

    HERO = "hero"
    THUMBNAIL = "thumbnail"
    ADAPTIVE = "adaptive"
