from league import db, bcrypt
from flask_login import UserMixin

SHORT = 'SHORT'
LONG = 'LONG'
POSITIONS = (SHORT, LONG)

SPLIT = 'SPLIT'
PUTT_OFF = 'PUTT_OFF'
TIE_BREAKER_MODES = (SPLIT, PUTT_OFF)

NIGHT_STATUSES = ('SCHEDULED', 'IN_PROGRESS', 'COMPLETED')

PUTT_OFF_IN_PROGRESS = 'in_progress'
PUTT_OFF_RESOLVED = 'resolved'
PUTT_OFF_ABANDONED = 'abandoned'


class User(UserMixin, db.Model):
    __tablename__ = 'user'
    id = db.Column(db.Integer, primary_key=True)
    username = db.Column(db.String(64), unique=True, nullable=False, index=True)
    password_hash = db.Column(db.String(256), nullable=False)
    is_admin = db.Column(db.Boolean, default=False, nullable=False)

    def set_password(self, password):
        self.password_hash = bcrypt.generate_password_hash(password).decode('utf-8')

    def check_password(self, password):
        return bcrypt.check_password_hash(self.password_hash, password)

    def to_dict(self):
        return {
            'id': self.id,
            'username': self.username,
            'is_admin': self.is_admin,
        }


class Division(db.Model):
    __tablename__ = 'division'
    id = db.Column(db.Integer, primary_key=True)
    code = db.Column(db.String(16), unique=True, nullable=False, index=True)
    name = db.Column(db.String(128), nullable=False)
    entry_fee = db.Column(db.Float, nullable=False, default=0)
    sort_order = db.Column(db.Integer, nullable=False, default=0)

    def to_dict(self):
        return {
            'id': self.id,
            'code': self.code,
            'name': self.name,
            'entry_fee': self.entry_fee,
            'sort_order': self.sort_order,
        }


class Player(db.Model):
    __tablename__ = 'player'
    id = db.Column(db.Integer, primary_key=True)
    name = db.Column(db.String(128), nullable=False)
    division_id = db.Column(db.Integer, db.ForeignKey('division.id'), nullable=True)
    user_id = db.Column(db.Integer, db.ForeignKey('user.id'), nullable=True, unique=True)
    division = db.relationship('Division')

    @property
    def division_code(self):
        return self.division.code if self.division else None

    def to_dict(self):
        return {
            'id': self.id,
            'name': self.name,
            'division_id': self.division_id,
            'division_code': self.division_code,
        }


class LeagueNight(db.Model):
    __tablename__ = 'league_night'
    id = db.Column(db.Integer, primary_key=True)
    date = db.Column(db.DateTime, nullable=False)
    status = db.Column(db.String(32), nullable=False, default='SCHEDULED')  # SCHEDULED, IN_PROGRESS, COMPLETED
    tie_breaker_mode = db.Column(db.String(16), nullable=False, default=SPLIT)
    notes = db.Column(db.Text, nullable=True)
    holes = db.relationship('Hole', backref='league_night', order_by='Hole.number', cascade='all, delete-orphan')
    rounds = db.relationship('Round', backref='league_night', order_by='Round.number', cascade='all, delete-orphan')
    check_ins = db.relationship('CheckIn', backref='league_night', cascade='all, delete-orphan')
    cards = db.relationship('Card', backref='league_night', order_by='Card.id', cascade='all, delete-orphan')
    putt_offs = db.relationship('PuttOff', backref='league_night', order_by='PuttOff.id', cascade='all, delete-orphan')

    def to_dict(self, include_layout=True):
        data = {
            'id': self.id,
            'date': self.date.isoformat() if self.date else None,
            'status': self.status,
            'tie_breaker_mode': self.tie_breaker_mode,
            'notes': self.notes,
        }
        if include_layout:
            data['holes'] = [h.to_dict() for h in self.holes]
            data['rounds'] = [r.to_dict() for r in self.rounds]
        return data


class Hole(db.Model):
    __tablename__ = 'hole'
    __table_args__ = (db.UniqueConstraint('league_night_id', 'number'),)
    id = db.Column(db.Integer, primary_key=True)
    league_night_id = db.Column(db.Integer, db.ForeignKey('league_night.id'), nullable=False)
    number = db.Column(db.Integer, nullable=False)

    def to_dict(self):
        return {'id': self.id, 'number': self.number}


class Round(db.Model):
    __tablename__ = 'round'
    __table_args__ = (db.UniqueConstraint('league_night_id', 'number'),)
    id = db.Column(db.Integer, primary_key=True)
    league_night_id = db.Column(db.Integer, db.ForeignKey('league_night.id'), nullable=False)
    number = db.Column(db.Integer, nullable=False)
    is_complete = db.Column(db.Boolean, default=False, nullable=False)

    def to_dict(self):
        return {'id': self.id, 'number': self.number, 'is_complete': self.is_complete}


class CheckIn(db.Model):
    __tablename__ = 'check_in'
    __table_args__ = (db.UniqueConstraint('league_night_id', 'player_id'),)
    id = db.Column(db.Integer, primary_key=True)
    league_night_id = db.Column(db.Integer, db.ForeignKey('league_night.id'), nullable=False)
    player_id = db.Column(db.Integer, db.ForeignKey('player.id'), nullable=False)
    has_paid = db.Column(db.Boolean, default=False, nullable=False)
    checked_in_by = db.Column(db.Integer, db.ForeignKey('user.id'), nullable=True)
    player = db.relationship('Player')

    def to_dict(self):
        return {
            'id': self.id,
            'league_night_id': self.league_night_id,
            'player': self.player.to_dict() if self.player else None,
            'has_paid': self.has_paid,
        }


class Score(db.Model):
    __tablename__ = 'score'
    __table_args__ = (
        db.UniqueConstraint('player_id', 'hole_id', 'round_id', 'position', name='uq_score_shot'),
    )
    id = db.Column(db.Integer, primary_key=True)
    player_id = db.Column(db.Integer, db.ForeignKey('player.id'), nullable=False)
    hole_id = db.Column(db.Integer, db.ForeignKey('hole.id'), nullable=False)
    round_id = db.Column(db.Integer, db.ForeignKey('round.id'), nullable=False)
    position = db.Column(db.String(8), nullable=False)  # SHORT or LONG
    made = db.Column(db.Integer, nullable=False, default=0)
    bonus = db.Column(db.Boolean, nullable=False, default=False)
    entered_by = db.Column(db.Integer, db.ForeignKey('user.id'), nullable=True)
    player = db.relationship('Player')
    hole = db.relationship('Hole')
    round = db.relationship('Round')

    def to_dict(self):
        return {
            'id': self.id,
            'player_id': self.player_id,
            'hole_id': self.hole_id,
            'round_id': self.round_id,
            'position': self.position,
            'made': self.made,
            'bonus': self.bonus,
        }


class Card(db.Model):
    __tablename__ = 'card'
    id = db.Column(db.Integer, primary_key=True)
    league_night_id = db.Column(db.Integer, db.ForeignKey('league_night.id'), nullable=False)
    name = db.Column(db.String(50), nullable=False)
    starting_hole = db.Column(db.Integer, nullable=False, default=1)
    scorekeeper_id = db.Column(db.Integer, db.ForeignKey('player.id'), nullable=True)
    scorekeeper = db.relationship('Player')
    players = db.relationship('CardPlayer', backref='card', order_by='CardPlayer.sort_order',
                              cascade='all, delete-orphan')

    def to_dict(self):
        return {
            'id': self.id,
            'league_night_id': self.league_night_id,
            'name': self.name,
            'starting_hole': self.starting_hole,
            'scorekeeper_id': self.scorekeeper_id,
            'players': [cp.player.to_dict() for cp in self.players],
        }


class CardPlayer(db.Model):
    __tablename__ = 'card_player'
    __table_args__ = (db.UniqueConstraint('card_id', 'player_id'),)
    id = db.Column(db.Integer, primary_key=True)
    card_id = db.Column(db.Integer, db.ForeignKey('card.id'), nullable=False)
    player_id = db.Column(db.Integer, db.ForeignKey('player.id'), nullable=False)
    sort_order = db.Column(db.Integer, nullable=False, default=0)
    player = db.relationship('Player')


class PuttOff(db.Model):
    __tablename__ = 'putt_off'
    id = db.Column(db.Integer, primary_key=True)
    league_night_id = db.Column(db.Integer, db.ForeignKey('league_night.id'), nullable=False)
    division_id = db.Column(db.Integer, db.ForeignKey('division.id'), nullable=False)
    round = db.Column(db.Integer, nullable=False, default=1)
    status = db.Column(db.String(16), nullable=False, default=PUTT_OFF_IN_PROGRESS)  # in_progress, resolved, abandoned
    winner_id = db.Column(db.Integer, db.ForeignKey('player.id'), nullable=True)
    participants = db.relationship('PuttOffParticipant', backref='putt_off',
                                   order_by='PuttOffParticipant.id',
                                   cascade='all, delete-orphan')

    def current_participants(self):
        return [p for p in self.participants if p.round == self.round]

    def to_dict(self):
        return {
            'id': self.id,
            'league_night_id': self.league_night_id,
            'division_id': self.division_id,
            'round': self.round,
            'status': self.status,
            'winner_id': self.winner_id,
            'participants': [p.to_dict() for p in self.participants],
        }


class PuttOffParticipant(db.Model):
    __tablename__ = 'putt_off_participant'
    __table_args__ = (db.UniqueConstraint('putt_off_id', 'player_id', 'round'),)
    id = db.Column(db.Integer, primary_key=True)
    putt_off_id = db.Column(db.Integer, db.ForeignKey('putt_off.id'), nullable=False)
    player_id = db.Column(db.Integer, db.ForeignKey('player.id'), nullable=False)
    round = db.Column(db.Integer, nullable=False)
    made = db.Column(db.Integer, nullable=False, default=0)
    bonus = db.Column(db.Boolean, nullable=False, default=False)

    def to_dict(self):
        return {
            'player_id': self.player_id,
            'round': self.round,
            'made': self.made,
            'bonus': self.bonus,
        }
