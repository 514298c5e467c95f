from truco.bidding import envido_points, flor_points, has_flor
from truco.cards import Card, Rank, Suit


def test_envido_pairs_two_cards_of_a_suit():
    hand = [Card(Rank.SEVEN, Suit.ESPADAS), Card(Rank.SIX, Suit.ESPADAS), Card(Rank.ONE, Suit.OROS)]
    assert envido_points(hand) == 33


def test_face_cards_count_zero_in_a_pair():
    hand = [Card(Rank.REY, Suit.OROS), Card(Rank.SOTA, Suit.OROS), Card(Rank.FOUR, Suit.COPAS)]
    assert envido_points(hand) == 20
    hand = [Card(Rank.SEVEN, Suit.OROS), Card(Rank.CABALLO, Suit.OROS), Card(Rank.FOUR, Suit.COPAS)]
    assert envido_points(hand) == 27


def test_envido_without_a_pair_uses_highest_card():
    hand = [Card(Rank.FIVE, Suit.ESPADAS), Card(Rank.SEVEN, Suit.OROS), Card(Rank.REY, Suit.COPAS)]
    assert envido_points(hand) == 7
    faces = [Card(Rank.REY, Suit.ESPADAS), Card(Rank.CABALLO, Suit.OROS), Card(Rank.SOTA, Suit.COPAS)]
    assert envido_points(faces) == 0


def test_envido_with_three_of_a_suit_keeps_best_two():
    hand = [Card(Rank.SEVEN, Suit.BASTOS), Card(Rank.SIX, Suit.BASTOS), Card(Rank.FIVE, Suit.BASTOS)]
    assert envido_points(hand) == 33


def test_flor_needs_three_cards_of_one_suit():
    flor = [Card(Rank.SEVEN, Suit.BASTOS), Card(Rank.SIX, Suit.BASTOS), Card(Rank.FIVE, Suit.BASTOS)]
    assert has_flor(flor)
    assert flor_points(flor) == 38

    near = [Card(Rank.SEVEN, Suit.BASTOS), Card(Rank.SIX, Suit.BASTOS), Card(Rank.FIVE, Suit.OROS)]
    assert not has_flor(near)
    assert flor_points(near) == 0


def test_flor_of_face_cards_is_worth_twenty():
    hand = [Card(Rank.REY, Suit.COPAS), Card(Rank.CABALLO, Suit.COPAS), Card(Rank.SOTA, Suit.COPAS)]
    assert flor_points(hand) == 20
