from datetime import timedelta

from tech_digest.stages.selection import select_articles


def test_returns_fewer_when_not_enough_candidates(store, cfg, add_article, add_user, now):
    for score in (0.9, 0.8, 0.7):
        add_article(score=score)
    user = add_user(article_count=5)

    assert len(select_articles(store, user, now, cfg)) == 3


def test_orders_by_score_and_respects_count(store, cfg, add_article, add_user, now):
    scores = [0.65, 0.95, 0.7, 0.9, 0.8]
    articles = [add_article(score=s) for s in scores]
    user = add_user(article_count=3)

    selected = select_articles(store, user, now, cfg)

    assert [a.relevance_score for a in selected] == [0.95, 0.9, 0.8]
    assert {a.id for a in selected} <= {a.id for a in articles}


def test_excludes_articles_already_sent(store, cfg, add_article, add_user, now):
    sent = add_article(score=0.99)
    fresh = add_article(score=0.7)
    user = add_user()
    store.record_delivery_success(user, [sent], (now - timedelta(days=1)).date(), sent_at=now - timedelta(days=1))

    selected = select_articles(store, user, now, cfg)

    assert [a.id for a in selected] == [fresh.id]


def test_sent_history_is_per_user(store, cfg, add_article, add_user, now):
    article = add_article(score=0.9)
    first = add_user("first@example.com")
    second = add_user("second@example.com")
    store.record_delivery_success(first, [article], now.date(), sent_at=now)

    assert select_articles(store, first, now, cfg) == []
    assert [a.id for a in select_articles(store, second, now, cfg)] == [article.id]


def test_only_relevant_recent_articles_qualify(store, cfg, add_article, add_user, now):
    add_article(score=0.59)
    add_article(score=0.9, gathered_at=now - timedelta(days=7, minutes=1))
    inside = add_article(score=0.6, gathered_at=now - timedelta(days=6, hours=23))
    add_article()  # unscored
    user = add_user()

    assert [a.id for a in select_articles(store, user, now, cfg)] == [inside.id]


def test_invalid_article_count_is_clamped(store, cfg, add_article, add_user, now):
    for _ in range(20):
        add_article(score=0.9)
    user = add_user()
    user.article_count = 99

    assert len(select_articles(store, user, now, cfg)) == 15

    user.article_count = 0
    assert len(select_articles(store, user, now, cfg)) == 5
