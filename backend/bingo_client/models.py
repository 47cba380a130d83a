from bingo_client import db


class ClientBlob(db.Model):
    __tablename__ = 'client_blobs'
    key = db.Column(db.String(64), primary_key=True)
    value = db.Column(db.Text, nullable=False, default='{}')
    updated_at = db.Column(db.DateTime, server_default=db.func.now(), onupdate=db.func.now())

    def to_dict(self):
        return {
            'key': self.key,
            'value': self.value,
        }
